"""
Models package - Gemini API integration.
"""

from .config import GeminiConfig, GeminiModel
from .loader import GeminiBackend, GenerativeBackend, ModelLoader, ModelLoadError

__all__ = [
    "GeminiConfig",
    "GeminiModel",
    "GeminiBackend",
    "GenerativeBackend",
    "ModelLoader",
    "ModelLoadError",
]
