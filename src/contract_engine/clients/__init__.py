"""External service clients."""

from .platform import PlatformClient, PlatformError

__all__ = ["PlatformClient", "PlatformError"]
