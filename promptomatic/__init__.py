"""Prompt-o-matic: an LLM-driven requirements interview service."""

__version__ = "0.1.0"
