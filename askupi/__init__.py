"""AskUPI: LLM-backed analysis of UPI statements with a local history and chat assistant."""
