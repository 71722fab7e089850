"""Runtime configuration for the chat client.

Values come from the process environment (and a ``.env`` file next to the
working directory, if any). The API key is required; everything else has a
default that matches the public Gemini endpoint.
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-1.5-flash"


class ChatConfig(BaseModel):
    """Configuration for the generation client and the UI.

    Attributes:
        api_key: Gemini API key, sent as the ``key`` query parameter.
        model_name: Model identifier used in the request path.
        base_url: API base URL without a trailing slash.
        timeout: Seconds to wait for the HTTP response.
        appearance: ``system`` follows the device, ``light``/``dark`` force it.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY", ""),
        description="API key for the Gemini API",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
        description="Model to use",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL),
        description="API base URL",
    )
    timeout: float = Field(
        default_factory=lambda: float(os.getenv("GEMINI_TIMEOUT", "30")),
        gt=0.0,
        description="HTTP timeout in seconds",
    )
    appearance: Literal["system", "light", "dark"] = Field(
        default_factory=lambda: os.getenv("MAVERICK_APPEARANCE", "system").lower(),
        description="Theme override",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError("API key required. Set GEMINI_API_KEY in .env")
        return v.strip()

    @field_validator("model_name")
    @classmethod
    def validate_model_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("model_name must not be empty")
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")


def get_chat_config() -> ChatConfig:
    """Create chat configuration from environment.

    Returns:
        Configured ChatConfig instance.

    Raises:
        ValueError: If no API key is set.
    """
    return ChatConfig()
