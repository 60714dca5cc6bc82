"""
Model configuration with strong typing.
Centralized settings for the Gemini API.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..core import Settings


class GeminiModel(str, Enum):
    """Gemini model variants used for contract optimization."""

    FLASH = "gemini-2.5-flash"  # Default


class GeminiConfig(BaseModel):
    """Type-safe Gemini API configuration."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)  # Immutable for thread safety

    # Model selection
    model_name: str = Field(default=GeminiModel.FLASH.value)
    api_key: str | None = Field(default=None)

    # Generation parameters
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, ge=1, le=65536)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    top_k: int = Field(default=40, ge=1, le=100)

    # Contracts are always requested as JSON
    json_mode: bool = Field(default=True)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiConfig":
        return cls(
            model_name=settings.gemini_model,
            api_key=settings.gemini_api_key or None,
            temperature=settings.gemini_temperature,
            max_tokens=settings.gemini_max_tokens,
        )
