"""
Proxy resolution for outbound feed requests.

Explicit configuration wins. Without it, the environment is consulted for
https_proxy and then http_proxy, ignoring the case of the variable names.
Any problem with the settings is logged and treated as "no proxy".
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import unquote, urlsplit

from .exceptions import ProxyConfigError

logger = logging.getLogger(__name__)

ENVIRONMENT_VARIABLES = ("https_proxy", "http_proxy")
DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ProxyInfo:
    """Effective proxy for a run."""
    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.username.strip() and self.password and self.password.strip())


def _trim_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class ProxyResolver:
    """
    Determines the proxy to use from configuration or environment.

    Args:
        config: The ``http.proxy`` config section (address, port, username, password)
        environ: Environment mapping, defaults to ``os.environ``
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, environ: Optional[Mapping[str, str]] = None):
        self.config = config or {}
        self.environ = environ if environ is not None else os.environ

    def resolve(self) -> Optional[ProxyInfo]:
        proxy_info = self.from_config()
        if proxy_info is None:
            proxy_info = self.from_environment()
        if proxy_info:
            logger.info("Using proxy %s:%s", proxy_info.host, proxy_info.port)
        return proxy_info

    def from_config(self) -> Optional[ProxyInfo]:
        address = _trim_to_none(self.config.get("address"))
        if address is None:
            return None

        try:
            port = self._config_port(self.config.get("port"))
        except ProxyConfigError as exc:
            logger.warning("Ignoring configured proxy %s: %s", address, exc)
            return None

        return ProxyInfo(
            host=address,
            port=port,
            username=_trim_to_none(self.config.get("username")),
            password=_trim_to_none(self.config.get("password")),
        )

    def from_environment(self) -> Optional[ProxyInfo]:
        try:
            for variable in ENVIRONMENT_VARIABLES:
                value = self._lookup(variable)
                if value:
                    return self.parse_proxy_url(value)
        except (ProxyConfigError, OSError) as exc:
            logger.warning("Could not parse proxy settings from environment: %s", exc)
        return None

    def _lookup(self, variable: str) -> Optional[str]:
        for name, value in self.environ.items():
            if name.upper() == variable.upper():
                value = _trim_to_none(value)
                if value:
                    return value
        return None

    @staticmethod
    def _config_port(value: Any) -> int:
        if value is None or str(value).strip() == "":
            raise ProxyConfigError("proxy port is not configured")
        try:
            port = int(str(value).strip())
        except ValueError:
            raise ProxyConfigError(f"invalid proxy port {value!r}") from None
        if not 0 < port < 65536:
            raise ProxyConfigError(f"proxy port out of range: {port}")
        return port

    @staticmethod
    def parse_proxy_url(url: str) -> ProxyInfo:
        """
        Build ProxyInfo from ``scheme://[user[:pass]@]host[:port]``.

        Raises:
            ProxyConfigError: If the URL has no scheme, no host or a bad port
        """
        try:
            parts = urlsplit(url)
        except ValueError as exc:
            raise ProxyConfigError(f"malformed proxy URL {url}: {exc}") from None
        if not parts.scheme or not parts.netloc:
            raise ProxyConfigError(f"malformed proxy URL: {url}")
        if not parts.hostname:
            raise ProxyConfigError(f"proxy URL has no host: {url}")

        try:
            port = parts.port
        except ValueError:
            raise ProxyConfigError(f"proxy URL has an invalid port: {url}") from None
        if port is None:
            port = DEFAULT_PORTS.get(parts.scheme.lower())
            if port is None:
                raise ProxyConfigError(f"proxy URL has no port: {url}")

        username = None
        password = None
        userinfo, _, _ = parts.netloc.rpartition("@")
        if userinfo:
            credentials = userinfo.split(":", 1)
            username = unquote(credentials[0]) or None
            if len(credentials) == 2:
                password = unquote(credentials[1]) or None

        return ProxyInfo(host=parts.hostname, port=port, username=username, password=password)
