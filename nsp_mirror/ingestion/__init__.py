"""
Ingestion layer for the NSP advisory mirror.

Provides proxy resolution, the HTTP transport, the paginated advisory
fetcher and the mapping from raw advisories to vulnerability records.
"""
from .exceptions import FeedError, MirrorCancelled, MirrorError, ProxyConfigError, TransportError
from .http_client import CancellationToken, HttpClient, TransportFactory
from .nsp_fetcher import AdvisoryFetcher
from .nsp_normalizer import AdvisoryNormalizer
from .nsp_parser import Advisory, AdvisoryPage, parse_advisory_page
from .proxy import ProxyInfo, ProxyResolver
from .records import NSP_SOURCE, VulnerabilityRecord

__all__ = [
    "Advisory",
    "AdvisoryFetcher",
    "AdvisoryNormalizer",
    "AdvisoryPage",
    "CancellationToken",
    "FeedError",
    "HttpClient",
    "MirrorCancelled",
    "MirrorError",
    "NSP_SOURCE",
    "ProxyConfigError",
    "ProxyInfo",
    "ProxyResolver",
    "TransportError",
    "TransportFactory",
    "VulnerabilityRecord",
    "parse_advisory_page",
]
