"""Workers package: orchestration of the upload and chat flows."""

from .analysis_runner import AnalysisRunner  # noqa: F401
