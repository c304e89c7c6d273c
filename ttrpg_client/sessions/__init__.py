"""Sessions feature exports."""

from .api import SessionApi
from .store import SessionStore

__all__ = ["SessionApi", "SessionStore"]
