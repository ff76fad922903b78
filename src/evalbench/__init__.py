"""evalbench - simulate, score, and aggregate LLM prompt evaluations."""

__version__ = "0.1.0"
