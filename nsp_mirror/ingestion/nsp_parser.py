"""
Decoder for NSP advisory list responses.

The feed returns::

    {"results": [...advisories...], "offset": 0, "count": 50, "total": 120}

Advisory fields arrive in snake_case and are kept as raw strings; date and
CVSS interpretation happens in the normalizer.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .exceptions import FeedError


@dataclass
class Advisory:
    """One raw advisory from the NSP feed."""
    id: Any
    title: Optional[str] = None
    module_name: Optional[str] = None
    overview: Optional[str] = None
    created_at: Optional[str] = None
    publish_date: Optional[str] = None
    updated_at: Optional[str] = None
    cvss_vector: Optional[str] = None
    author: Optional[str] = None
    recommendation: Optional[str] = None
    references: Optional[str] = None
    vulnerable_versions: Optional[str] = None
    patched_versions: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Advisory":
        return cls(
            id=data.get("id"),
            title=data.get("title"),
            module_name=data.get("module_name"),
            overview=data.get("overview"),
            created_at=data.get("created_at"),
            publish_date=data.get("publish_date"),
            updated_at=data.get("updated_at"),
            cvss_vector=data.get("cvss_vector"),
            author=data.get("author"),
            recommendation=data.get("recommendation"),
            references=data.get("references"),
            vulnerable_versions=data.get("vulnerable_versions"),
            patched_versions=data.get("patched_versions"),
        )


@dataclass
class AdvisoryPage:
    """One page of the advisory feed."""
    offset: int
    count: int
    total: int
    advisories: List[Advisory] = field(default_factory=list)


def parse_advisory_page(payload: Any) -> AdvisoryPage:
    """
    Decode one advisory list response.

    Args:
        payload: Decoded JSON body

    Returns:
        AdvisoryPage with advisories in feed order

    Raises:
        FeedError: If the body is not an advisory list object
    """
    if not isinstance(payload, dict):
        raise FeedError(f"Unexpected advisory list payload: {type(payload).__name__}")

    results = payload.get("results") or []
    if not isinstance(results, list):
        raise FeedError("Advisory list 'results' is not an array")

    advisories = [Advisory.from_json(item) for item in results if isinstance(item, dict)]

    try:
        offset = int(payload.get("offset") or 0)
        count = int(payload["count"]) if payload.get("count") is not None else len(advisories)
        total = int(payload.get("total") or 0)
    except (TypeError, ValueError) as exc:
        raise FeedError(f"Invalid pagination fields in advisory list: {exc}") from exc

    return AdvisoryPage(offset=offset, count=count, total=total, advisories=advisories)
