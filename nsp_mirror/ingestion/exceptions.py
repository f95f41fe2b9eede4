"""
Exceptions raised while mirroring the NSP advisory feed.

Hierarchy:
- MirrorError (base)
  ├── ProxyConfigError (proxy settings could not be used)
  └── FeedError (a page could not be retrieved or decoded)
      ├── TransportError (network-level failure)
      └── MirrorCancelled (deadline expired or run cancelled)
"""
from typing import Optional


class MirrorError(Exception):
    """Base exception for mirror operations."""


class ProxyConfigError(MirrorError):
    """Raised when proxy settings are malformed."""


class FeedError(MirrorError):
    """Raised when the advisory feed cannot be read. Fatal for the run."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class TransportError(FeedError):
    """Raised when the HTTP request itself fails."""


class MirrorCancelled(FeedError):
    """Raised when a run is cancelled or its deadline expires."""
