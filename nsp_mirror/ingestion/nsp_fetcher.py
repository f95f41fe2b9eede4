"""
Offset-based pagination over the NSP advisory feed.
"""
import logging
from typing import Iterator, Optional

from .exceptions import FeedError
from .http_client import CancellationToken, HttpClient
from .nsp_parser import AdvisoryPage, parse_advisory_page

logger = logging.getLogger(__name__)

NSP_API_BASE_URL = "https://api.nodesecurity.io/advisories"


class AdvisoryFetcher:
    """
    Drives the pagination loop against the advisory feed.

    Pages are requested strictly in increasing offset order. The total
    reported by each page is used to decide whether another page follows,
    so a total that changes mid-run is followed rather than frozen. The loop
    still stops on an empty page, which keeps it finite if items disappear.
    """

    def __init__(self, base_url: str = NSP_API_BASE_URL):
        self.base_url = base_url

    def fetch_all(
        self,
        transport: HttpClient,
        cancellation: Optional[CancellationToken] = None,
    ) -> Iterator[AdvisoryPage]:
        """
        Yield advisory pages until the running offset reaches the reported total.

        Raises:
            FeedError: On a non-200 response or undecodable body
            TransportError: On a network failure
            MirrorCancelled: When the cancellation token fires
        """
        offset = 0
        while True:
            if cancellation is not None:
                cancellation.raise_if_cancelled()

            page = self._fetch_page(transport, offset, cancellation)
            if page.count <= 0:
                if offset < page.total:
                    logger.warning(
                        "NSP returned an empty page at offset %d (total %d), stopping", offset, page.total
                    )
                break

            yield page

            offset += page.count
            if offset >= page.total:
                break

    def _fetch_page(
        self,
        transport: HttpClient,
        offset: int,
        cancellation: Optional[CancellationToken],
    ) -> AdvisoryPage:
        logger.info("Retrieving NSP advisories from %s (offset %d)", self.base_url, offset)
        response = transport.get(
            self.base_url,
            params={"offset": offset},
            headers={"Accept": "application/json"},
            cancellation=cancellation,
        )

        if response.status_code != 200:
            raise FeedError(
                f"NSP returned HTTP {response.status_code} for offset {offset}",
                url=self.base_url,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise FeedError(f"NSP response at offset {offset} is not JSON: {exc}", url=self.base_url) from exc

        page = parse_advisory_page(payload)
        logger.debug("Page at offset %d: count=%d total=%d", offset, page.count, page.total)
        return page
