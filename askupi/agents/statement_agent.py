"""StatementAgent: LLM-backed analysis of UPI statements and follow-up chat.

This module defines the StatementAgent class, which sends statement text to a Groq-hosted language model and returns the model's raw answer. Turning that answer into an Analysis is left to the response normalizer.
"""

import json
from typing import Any

from colorlog.escape_codes import escape_codes

from askupi.agents.base import BaseAgent
from askupi.agents.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    ANALYSIS_USER_PROMPT_TEMPLATE,
    CHAT_SYSTEM_PROMPT_TEMPLATE,
)
from askupi.agents.registry import AgentRegistry
from askupi.core.settings import Settings
from askupi.core.utils import get_logger, truncate

PROMPT_LOG_LEN = 80

logger = get_logger("askupi.agent")


def _get_color(color: str) -> str:
    return escape_codes.get(color, "")


class StatementAgent(BaseAgent):
    """Agent responsible for LLM calls on statements and conversations."""

    def __init__(self, llm_client: object, settings: Settings) -> None:
        """Initialize the StatementAgent with an LLM client and settings."""
        self.llm_client = llm_client
        self.settings = settings

    def analyze_statement(self, statement_text: str, filename: str) -> str:
        """Ask the model for the JSON analysis of a statement."""
        cyan = _get_color("cyan")
        reset = _get_color("reset")
        logger.info(f"{cyan}AGENT: Analyzing {filename} ({len(statement_text)} chars of text){reset}")
        messages = [
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": ANALYSIS_USER_PROMPT_TEMPLATE.format(filename=filename, statement=statement_text),
            },
        ]
        return self._complete(messages)

    def chat(self, messages: list[dict[str, Any]], analysis_data: dict[str, Any]) -> str:
        """Answer the last user message with the analysis as system context."""
        system_prompt = CHAT_SYSTEM_PROMPT_TEMPLATE.format(analysis=json.dumps(analysis_data, indent=2))
        turns = [{"role": m["role"], "content": m["content"]} for m in messages]
        question = truncate(turns[-1]["content"], PROMPT_LOG_LEN) if turns else ""
        logger.info(f"AGENT: Chat turn {len(turns)}: {question}")
        return self._complete([{"role": "system", "content": system_prompt}, *turns])

    def _complete(self, messages: list[dict[str, str]]) -> str:
        yellow = _get_color("yellow")
        green = _get_color("green")
        reset = _get_color("reset")
        try:
            logger.info(f"{yellow}AGENT: Calling LLM ({self.settings.groq_model})...{reset}")
            completion = self.llm_client.chat.completions.create(
                model=self.settings.groq_model,
                messages=messages,
                temperature=self.settings.groq_temperature,
                max_completion_tokens=self.settings.groq_max_completion_tokens,
                top_p=self.settings.groq_top_p,
                stream=self.settings.groq_stream,
            )
        except Exception as exc:
            msg = f"Groq API call failed: {exc}"
            logger.exception(msg)
            raise RuntimeError(msg) from exc
        if self.settings.groq_stream:
            raw_output = self._collect_llm_output(completion)
        else:
            raw_output = completion.choices[0].message.content or ""
        logger.info(f"{green}AGENT: Received {len(raw_output)} chars{reset}")
        return raw_output

    def _collect_llm_output(self, completion: object) -> str:
        """Collect the full output from the LLM completion stream."""
        raw_output = ""
        try:
            for chunk in completion:
                text = chunk.choices[0].delta.content or ""
                raw_output += text
        except Exception as exc:
            msg = f"Groq streaming error: {exc}"
            logger.exception(msg)
            raise RuntimeError(msg) from exc
        return raw_output


AgentRegistry.register("groq", StatementAgent)
