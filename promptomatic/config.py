import os
from typing import Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Load environment variables from .env file
load_dotenv()

# Provider selection and credentials
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")

# Vendor endpoints and models
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com")
ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4-turbo-preview")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-20241022")
ANTHROPIC_VERSION = os.getenv("ANTHROPIC_VERSION", "2023-06-01")

# Local state
SESSION_STORE_DIR = os.getenv("SESSION_STORE_DIR", "./sessions")
LOG_FILE = os.getenv("LOG_FILE", "chat_history.log")

SUPPORTED_PROVIDERS = ("openai", "anthropic")

CREDENTIAL_VARIABLES = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class ConfigurationError(Exception):
    """Raised when the process configuration cannot serve a request (e.g. a missing API key)."""
    pass


def _number(env: Mapping[str, str], name: str, default, cast=float):
    """Reads a numeric setting, reporting a malformed value as a configuration error."""
    raw = env.get(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got '{raw}'.") from None


# LLM Client Parameters
LLM_CLIENT_TIMEOUT = _number(os.environ, "LLM_CLIENT_TIMEOUT", 60.0)  # seconds, single attempt
DEFAULT_TEMPERATURE = _number(os.environ, "DEFAULT_TEMPERATURE", 0.7)
DEFAULT_MAX_TOKENS = _number(os.environ, "DEFAULT_MAX_TOKENS", 1000, cast=int)


class ProviderConfig(BaseModel):
    """
    Immutable, process-wide provider configuration.

    Built once at startup and handed to the router; tests construct it directly
    with fake credentials instead of patching the environment.
    """
    model_config = ConfigDict(frozen=True)

    provider: Literal["openai", "anthropic"] = "openai"
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    openai_model: str = "gpt-4-turbo-preview"
    anthropic_model: str = "claude-3-5-sonnet-20241022"
    anthropic_version: str = "2023-06-01"
    openai_base_url: str = "https://api.openai.com"
    anthropic_base_url: str = "https://api.anthropic.com"
    timeout: float = 60.0

    @property
    def credential(self) -> Optional[str]:
        """The API key of the selected provider, or None when it is not set."""
        if self.provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key

    @property
    def credential_variable(self) -> str:
        return CREDENTIAL_VARIABLES[self.provider]

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ProviderConfig":
        """
        Reads the provider configuration from a mapping (defaults to the process
        environment). An unknown provider name is a configuration error; a
        missing key is not, since it is reported when a request is routed.
        """
        if env is None:
            return cls._build(
                provider=LLM_PROVIDER,
                openai_api_key=OPENAI_API_KEY,
                anthropic_api_key=ANTHROPIC_API_KEY,
                openai_model=OPENAI_MODEL,
                anthropic_model=ANTHROPIC_MODEL,
                anthropic_version=ANTHROPIC_VERSION,
                openai_base_url=OPENAI_BASE_URL,
                anthropic_base_url=ANTHROPIC_BASE_URL,
                timeout=LLM_CLIENT_TIMEOUT,
            )
        return cls._build(
            provider=env.get("LLM_PROVIDER", "openai"),
            openai_api_key=env.get("OPENAI_API_KEY"),
            anthropic_api_key=env.get("ANTHROPIC_API_KEY"),
            openai_model=env.get("OPENAI_MODEL", "gpt-4-turbo-preview"),
            anthropic_model=env.get("ANTHROPIC_MODEL", "claude-3-5-sonnet-20241022"),
            anthropic_version=env.get("ANTHROPIC_VERSION", "2023-06-01"),
            openai_base_url=env.get("OPENAI_BASE_URL", "https://api.openai.com"),
            anthropic_base_url=env.get("ANTHROPIC_BASE_URL", "https://api.anthropic.com"),
            timeout=_number(env, "LLM_CLIENT_TIMEOUT", 60.0),
        )

    @classmethod
    def _build(cls, provider: str, **kwargs) -> "ProviderConfig":
        name = (provider or "openai").strip().lower()
        if name not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unknown LLM_PROVIDER '{provider}'. Expected one of: {', '.join(SUPPORTED_PROVIDERS)}."
            )
        # Empty strings in .env files count as unset
        kwargs["openai_api_key"] = kwargs.get("openai_api_key") or None
        kwargs["anthropic_api_key"] = kwargs.get("anthropic_api_key") or None
        return cls(provider=name, **kwargs)
