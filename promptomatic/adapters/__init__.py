from promptomatic.config import ProviderConfig

from .anthropic import AnthropicAdapter, split_system_message
from .base import LLMAdapter
from .openai import OpenAIAdapter


def build_adapter(config: ProviderConfig) -> LLMAdapter:
    """Creates the adapter for the configured provider. Called once per process."""
    if config.provider == "anthropic":
        return AnthropicAdapter.from_config(config)
    return OpenAIAdapter.from_config(config)
