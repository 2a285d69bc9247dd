"""
Configuration module for loading environment variables and settings.

This module handles:
1. Loading API keys from .env file
2. Setting default provider and conversation-loop configuration
3. Validating required settings (lax; a local OpenAI-compatible server needs no key)
"""

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class Config:
    """Configuration manager for provider settings and API keys."""

    # OpenAI (native tool calling)
    OPENAI_API_KEY: str = os.getenv('OPENAI_API_KEY', '')
    OPENAI_BASE_URL: str = os.getenv('OPENAI_BASE_URL', '')
    OPENAI_MODEL: str = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

    # Anthropic (native tool_use blocks)
    ANTHROPIC_API_KEY: str = os.getenv('ANTHROPIC_API_KEY', '')
    ANTHROPIC_MODEL: str = os.getenv('ANTHROPIC_MODEL', 'claude-3-5-haiku-latest')

    # Llama over an OpenAI-compatible endpoint (text protocol; Ollama by default)
    LLAMA_API_KEY: str = os.getenv('LLAMA_API_KEY', 'ollama')  # placeholder, often unused
    LLAMA_BASE_URL: str = os.getenv('LLAMA_BASE_URL', 'http://localhost:11434/v1')
    LLAMA_MODEL: str = os.getenv('LLAMA_MODEL', 'llama3.1')

    # Sampling
    TEMPERATURE: float = _env_float('ASSISTANT_TEMPERATURE', 0.2)
    MAX_TOKENS: int = _env_int('ASSISTANT_MAX_TOKENS', 1000)

    # Conversation loop
    MAX_ITERATIONS: int = _env_int('ASSISTANT_MAX_ITERATIONS', 10)
    CHATS_TTL: int = _env_int('ASSISTANT_CHATS_TTL', 3600)  # seconds, 0 disables expiry

    LOG_LEVEL: str = os.getenv('ASSISTANT_CHAT_LOG_LEVEL', 'WARNING')

    # Validation flags
    REQUIRE_OPENAI_KEY: bool = os.getenv('REQUIRE_OPENAI_KEY', 'false').lower() in ('1', 'true', 'yes')

    @classmethod
    def validate_api_keys(cls) -> None:
        """
        Optionally validate that required API keys are set.
        By default no key is required so a local server can be used.
        """
        if cls.REQUIRE_OPENAI_KEY and not cls.OPENAI_API_KEY:
            raise ValueError(
                "Missing required API key: OPENAI_API_KEY. "
                "Set REQUIRE_OPENAI_KEY=true to enforce; otherwise it's optional."
            )

    @classmethod
    def get_api_key(cls, key_name: str) -> Optional[str]:
        """
        Get an API key by name.

        Args:
            key_name: Name of the API key to retrieve

        Returns:
            The API key value or None if not found
        """
        return getattr(cls, key_name, None) or None


@dataclass
class AssistantConfig:
    """Per-assistant settings for the conversation loop."""
    max_iterations: int = Config.MAX_ITERATIONS
    interrupted_text: str = "The process was interrupted."
    cancelled_call_text: str = "ERROR: The process was interrupted by the user."
    unanswered_call_text: str = "ERROR: There was some error when calling action. Not all tools were responded."

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")


@dataclass
class ProviderSettings:
    """Connection and sampling settings handed to a provider adapter."""
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = Config.TEMPERATURE
    max_tokens: int = Config.MAX_TOKENS

    @classmethod
    def for_provider(cls, provider: str) -> "ProviderSettings":
        provider = (provider or "").strip().lower()
        if provider == "openai":
            return cls(model=Config.OPENAI_MODEL, api_key=Config.OPENAI_API_KEY or None,
                       base_url=Config.OPENAI_BASE_URL or None)
        if provider == "anthropic":
            return cls(model=Config.ANTHROPIC_MODEL, api_key=Config.ANTHROPIC_API_KEY or None)
        if provider == "llama":
            return cls(model=Config.LLAMA_MODEL, api_key=Config.LLAMA_API_KEY or None,
                       base_url=Config.LLAMA_BASE_URL or None)
        raise ValueError(f"Unknown provider '{provider}' (expected openai, anthropic or llama)")


# Lax validation on import (no exception by default)
Config.validate_api_keys()
