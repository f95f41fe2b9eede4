"""
HTTP transport for the advisory feed.

TransportFactory builds a fresh HttpClient per run from the resolved proxy.
The client carries no process-wide state, honours system settings
(trust_env) when no proxy is resolved, and never retries.
"""
import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from .exceptions import MirrorCancelled, TransportError
from .proxy import ProxyInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class CancellationToken:
    """Cooperative cancellation with an optional deadline."""

    def __init__(self, deadline_seconds: Optional[float] = None):
        self._deadline = time.monotonic() + deadline_seconds if deadline_seconds else None
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled or (self._deadline is not None and time.monotonic() >= self._deadline)

    def remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise MirrorCancelled("Mirror run was cancelled")
        if self.cancelled:
            raise MirrorCancelled("Mirror run deadline expired")


class HttpClient:
    """Thin requests wrapper with per-request proxies and deadline-bound timeouts."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        proxies: Optional[Dict[str, str]] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.session = session or requests.Session()
        self.proxies = proxies
        self.timeout_seconds = timeout_seconds

    def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> requests.Response:
        timeout = self.timeout_seconds
        if cancellation is not None:
            cancellation.raise_if_cancelled()
            remaining = cancellation.remaining()
            if remaining is not None:
                if remaining <= 0:
                    raise MirrorCancelled("Mirror run deadline expired")
                timeout = min(timeout, remaining)

        try:
            return self.session.get(
                url,
                params=params,
                headers=headers,
                proxies=self.proxies,
                timeout=timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}", url=url) from exc

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class TransportFactory:
    """Builds an HttpClient configured with the resolved proxy."""

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds

    def build(self, proxy_info: Optional[ProxyInfo]) -> HttpClient:
        session = requests.Session()
        # System CA bundle, netrc and *_PROXY/NO_PROXY variables
        session.trust_env = True

        proxies = None
        if proxy_info is not None:
            proxy_url = self.proxy_url(proxy_info)
            proxies = {"http": proxy_url, "https": proxy_url}
            if proxy_info.has_credentials:
                logger.debug("Proxy %s:%s uses basic authentication", proxy_info.host, proxy_info.port)

        return HttpClient(session=session, proxies=proxies, timeout_seconds=self.timeout_seconds)

    @staticmethod
    def proxy_url(proxy_info: ProxyInfo) -> str:
        """Proxy URL, carrying basic credentials only when both parts are set."""
        authority = f"{proxy_info.host}:{proxy_info.port}"
        if proxy_info.has_credentials:
            userinfo = f"{quote(proxy_info.username, safe='')}:{quote(proxy_info.password, safe='')}"
            authority = f"{userinfo}@{authority}"
        return f"http://{authority}"
