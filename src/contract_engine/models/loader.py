"""Model Loader - Gemini API backend for contract generation."""

from typing import Protocol

import google.generativeai as genai

from ..core import Settings, get_logger
from .config import GeminiConfig


logger = get_logger(__name__)


class ModelLoadError(Exception):
    """Model loading failed."""


class GenerativeBackend(Protocol):
    """Anything that turns a system and user prompt into raw model text."""

    def generate(self, system_prompt: str, user_prompt: str) -> str: ...


class GeminiBackend:
    """Gemini API wrapper returning JSON text."""

    def __init__(self, config: GeminiConfig):
        if not config.api_key:
            raise ModelLoadError("Gemini API key is not configured")
        self.config = config
        genai.configure(api_key=config.api_key)
        logger.info("model_loaded", model=config.model_name)

    def _model(self, system_prompt: str) -> genai.GenerativeModel:
        generation_config = genai.GenerationConfig(
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_tokens,
            top_p=self.config.top_p,
            top_k=self.config.top_k,
            response_mime_type="application/json" if self.config.json_mode else None,
        )
        return genai.GenerativeModel(
            model_name=self.config.model_name,
            generation_config=generation_config,
            system_instruction=system_prompt,
        )

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Non-streaming generation."""
        try:
            response = self._model(system_prompt).generate_content(user_prompt)
            return response.text
        except Exception as e:
            logger.error("invoke_error", model=self.config.model_name, error=str(e))
            raise


class ModelLoader:
    """Builds the configured generative backend."""

    @classmethod
    def load(cls, settings: Settings) -> GeminiBackend | None:
        """
        Load the configured backend.

        Returns None when generation is disabled (provider other than gemini,
        or no API key); callers then take the non-generative fallback path.
        """
        if not settings.backend_enabled:
            logger.warning("backend_disabled", provider=settings.llm_provider)
            return None
        config = GeminiConfig.from_settings(settings)
        logger.info("loading", model=config.model_name)
        try:
            backend = GeminiBackend(config)
        except Exception as e:
            logger.error("load_failed", error=str(e))
            raise ModelLoadError(f"Failed to load {config.model_name}") from e
        return backend
