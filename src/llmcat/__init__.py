"""llmcat: concatenate files matched by glob patterns into one LLM-ready stream."""
