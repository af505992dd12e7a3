"""Tests for recovering and validating the analysis object from model output."""

import json

import pytest
from conftest import make_analysis_dict

from askupi.core.errors import EmptyAnalysis, IncompleteAnalysis, MalformedResponse
from askupi.core.models import Category
from askupi.services.normalizer import (
    RAW_PREFIX_LEN,
    extract_fenced,
    extract_json_text,
    normalize_response,
    parse_json_object,
    trim_to_braces,
    unwrap_response,
)

ONE_TRANSACTION = {
    "transactions": [{"date": "2024-02-01", "amount": -99.0, "description": "Netflix", "category": "subscription"}],
    "summary": {
        "total_spent": -99.0,
        "total_received": 0,
        "net_change": -99.0,
        "transaction_count": 1,
        "start_date": "2024-02-01",
        "end_date": "2024-02-01",
    },
}


def test_extract_fenced_with_json_tag() -> None:
    """A ```json fence yields its inner content."""
    text = 'Sure!\n```json\n{"a": 1}\n```\nAnything else?'
    if extract_fenced(text) != '{"a": 1}':
        msg = f"Unexpected fenced content: {extract_fenced(text)!r}"
        raise AssertionError(msg)


def test_extract_fenced_without_tag() -> None:
    """An untagged fence is accepted as well."""
    if extract_fenced('```\n{"a": 1}\n```') != '{"a": 1}':
        raise AssertionError("Untagged fence not extracted")


def test_extract_fenced_absent() -> None:
    """No fence means no fenced tier result."""
    if extract_fenced('{"a": 1}') is not None:
        raise AssertionError("Expected None without a fence")


def test_trim_to_braces_drops_surrounding_prose() -> None:
    """Text before the first brace and after the last brace is discarded."""
    trimmed = trim_to_braces('  Here you go: {"a": {"b": 2}} hope this helps  ')
    if trimmed != '{"a": {"b": 2}}':
        msg = f"Unexpected trim result: {trimmed!r}"
        raise AssertionError(msg)


def test_trim_to_braces_without_braces_is_untouched() -> None:
    """Without braces only whitespace is trimmed."""
    if trim_to_braces("  nothing here ") != "nothing here":
        raise AssertionError("Expected whitespace-trimmed text")


def test_extract_json_text_prefers_fence() -> None:
    """The fenced tier runs before brace trimming."""
    text = 'noise {"ignored": true} ```json\n{"used": true}\n``` trailing'
    if json.loads(extract_json_text(text)) != {"used": True}:
        raise AssertionError("Fenced block should win over surrounding braces")


def test_parse_json_object_from_prose() -> None:
    """Prose around a bare object is tolerated."""
    if parse_json_object('The result is {"x": 1}.') != {"x": 1}:
        raise AssertionError("Expected the embedded object")


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "no json at all",
        "{",
        "}{",
        "{'single': 'quotes'}",
        '{"a": 1,}',
        "```json\n\n```",
        "[1, 2, 3]",
        '"just a string"',
        "\x00\xff{\x01",
        "{" * 5000,
    ],
)
def test_unparseable_text_raises_malformed_response(raw: str) -> None:
    """Anything that is not a JSON object after trimming is MalformedResponse."""
    with pytest.raises(MalformedResponse):
        parse_json_object(raw)


def test_malformed_response_carries_truncated_prefix() -> None:
    """The raw text is kept for diagnostics, cut to a fixed length."""
    raw = "x" * (RAW_PREFIX_LEN * 3)
    with pytest.raises(MalformedResponse) as excinfo:
        parse_json_object(raw)
    if excinfo.value.raw_prefix != raw[:RAW_PREFIX_LEN]:
        raise AssertionError("raw_prefix should be the first RAW_PREFIX_LEN characters")


def test_unwrap_flat_body() -> None:
    """A flat body is the analysis object itself."""
    body = make_analysis_dict()
    if unwrap_response(body) is not body:
        raise AssertionError("Flat body should be returned as is")


def test_wrapped_fenced_text_yields_one_transaction() -> None:
    """A body wrapped under ``text`` in a json fence is unwrapped and parsed."""
    body = {"text": f"```json\n{json.dumps(ONE_TRANSACTION)}\n```"}
    analysis = normalize_response(body)
    if len(analysis.transactions) != 1:
        msg = f"Expected 1 transaction, got {len(analysis.transactions)}"
        raise AssertionError(msg)
    if analysis.transactions[0].category is not Category.SUBSCRIPTION:
        raise AssertionError("Category should be parsed into the enum")


def test_wrapped_plain_text_is_parsed() -> None:
    """Wrapped text without a fence is parsed as JSON directly."""
    analysis = normalize_response({"text": json.dumps(ONE_TRANSACTION)})
    if analysis.summary.transaction_count != 1:
        raise AssertionError("Summary should be parsed")


def test_wrapped_garbage_is_malformed() -> None:
    """Wrapped text that is not JSON is MalformedResponse."""
    with pytest.raises(MalformedResponse):
        normalize_response({"text": "I could not read this statement."})


@pytest.mark.parametrize("transactions", [None, [], "not a list"])
def test_missing_or_empty_transactions_is_empty_analysis(transactions: object) -> None:
    """No transactions means the document was not a statement."""
    data = make_analysis_dict()
    if transactions is None:
        del data["transactions"]
    else:
        data["transactions"] = transactions
    with pytest.raises(EmptyAnalysis):
        normalize_response(data)


@pytest.mark.parametrize("summary", [None, "summary", [1, 2]])
def test_missing_summary_is_incomplete_analysis(summary: object) -> None:
    """The summary must be present and an object."""
    data = make_analysis_dict()
    if summary is None:
        del data["summary"]
    else:
        data["summary"] = summary
    with pytest.raises(IncompleteAnalysis):
        normalize_response(data)


def test_malformed_fields_are_incomplete_analysis() -> None:
    """Fields that fail validation are reported as IncompleteAnalysis."""
    data = make_analysis_dict()
    data["transactions"][0]["amount"] = "lots"
    with pytest.raises(IncompleteAnalysis):
        normalize_response(data)


def test_lists_are_capped_and_unknown_categories_coerced() -> None:
    """Insights and recommendations keep at most three entries; unknown categories become other."""
    data = make_analysis_dict()
    data["insights"] = [{"type": "tip", "description": f"tip {i}", "impact": None} for i in range(5)]
    data["recommendations"] = [{"category": "food", "action": f"a{i}", "potential_savings": 1} for i in range(4)]
    data["transactions"][0]["category"] = "Groceries"
    analysis = normalize_response(data)
    if len(analysis.insights) != 3 or len(analysis.recommendations) != 3:
        raise AssertionError("Lists should be capped at three entries")
    if analysis.transactions[0].category is not Category.OTHER:
        raise AssertionError("Unknown category should coerce to other")


def test_non_numeric_amounts_in_advice_become_none() -> None:
    """Savings or impact given as prose keep the entry and drop the number."""
    data = make_analysis_dict()
    data["recommendations"][0]["potential_savings"] = "500 per month"
    data["insights"][0]["impact"] = "high"
    analysis = normalize_response(data)
    if analysis.recommendations[0].potential_savings is not None or analysis.insights[0].impact is not None:
        raise AssertionError("Non-numeric amounts should read as None")
    if analysis.recommendations[0].action != "Limit food delivery orders":
        raise AssertionError("The recommendation itself should be kept")


def test_numeric_strings_in_advice_are_parsed() -> None:
    """Numbers sent as text are still read."""
    data = make_analysis_dict()
    data["recommendations"][0]["potential_savings"] = "1,200"
    if normalize_response(data).recommendations[0].potential_savings != 1200.0:
        raise AssertionError("Numeric text should be parsed")


def test_unknown_insight_type_becomes_tip() -> None:
    """Insight types outside the known set are read as tips."""
    data = make_analysis_dict()
    data["insights"] = [{"type": "warning", "description": "Late-night orders are frequent"}]
    insight = normalize_response(data).insights[0]
    if insight.type != "tip" or insight.description != "Late-night orders are frequent":
        msg = f"Unexpected insight {insight}"
        raise AssertionError(msg)


def test_category_breakdown_without_percentage_defaults() -> None:
    """Missing or unusable breakdown numbers read as zero; non-object entries are dropped."""
    data = make_analysis_dict()
    data["category_breakdown"] = {"food": {"total": 450.0}, "travel": {"total": "n/a", "percentage": 5}, "bad": 3}
    breakdown = normalize_response(data).category_breakdown
    if set(breakdown) != {"food", "travel"}:
        msg = f"Unexpected categories {sorted(breakdown)}"
        raise AssertionError(msg)
    if breakdown["food"].percentage != 0.0 or breakdown["travel"].total != 0.0:
        raise AssertionError("Unusable numbers should default to zero")


def test_unusable_advice_entries_are_dropped() -> None:
    """Entries without text, or that are not objects, are skipped rather than rejecting the analysis."""
    data = make_analysis_dict()
    data["insights"] = ["just a string", {"type": "tip"}, {"description": "Keep it up"}]
    data["recommendations"] = {"category": "food"}
    analysis = normalize_response(data)
    if [i.description for i in analysis.insights] != ["Keep it up"] or analysis.recommendations:
        raise AssertionError("Only usable entries should be kept")
