"""
Mirror task for the Node Security Platform advisory feed.

The task reacts to MIRROR_REQUESTED events and walks one run through
IDLE -> RUNNING -> COMPLETED | FAILED. A run resolves the proxy, builds a
transport, pages through the feed, normalizes and synchronizes each page,
and finally emits a single reindex notification.

Only one run may be in flight at a time; a trigger that arrives while
the task is RUNNING is rejected.
"""
import logging
import ssl
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from events.bus import Event, EventBus, EventKind
from ingestion.exceptions import FeedError
from ingestion.http_client import CancellationToken, TransportFactory
from ingestion.nsp_fetcher import NSP_API_BASE_URL, AdvisoryFetcher
from ingestion.nsp_normalizer import AdvisoryNormalizer
from ingestion.proxy import ProxyResolver
from observability.metrics import RunMetrics
from storage.database import Database
from storage.synchronizer import Synchronizer

logger = logging.getLogger(__name__)


class TaskState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


ALLOWED_TRANSITIONS = {
    TaskState.IDLE: {TaskState.RUNNING},
    TaskState.RUNNING: {TaskState.COMPLETED, TaskState.FAILED},
    TaskState.COMPLETED: {TaskState.RUNNING},
    TaskState.FAILED: {TaskState.RUNNING},
}


class TaskBusyError(RuntimeError):
    """Raised when a run is requested while another one is in flight."""


def check_runtime() -> Optional[str]:
    """
    Verify the interpreter can talk to the feed.

    The feed only accepts TLS 1.2 or newer.

    Returns:
        None when the runtime is supported, otherwise the reason it is not
    """
    if not getattr(ssl, "HAS_TLSv1_2", False):
        return "NSP requires TLS 1.2, which this Python's ssl module does not support"
    if ssl.OPENSSL_VERSION_INFO < (1, 0, 1):
        return f"NSP requires OpenSSL 1.0.1 or higher, found {ssl.OPENSSL_VERSION}"
    return None


class MirrorTask:
    """
    Performs a mirror of the NSP public advisories.

    Args:
        database: Store for vulnerabilities and run history
        bus: Event bus delivering triggers and receiving the reindex notification
        config: Parsed configuration (``mirror`` and ``http`` sections are used)
        transport_factory: Builds the per-run HTTP transport
        proxy_resolver: Resolves the proxy for the run
        runtime_check: Returns a reason string when the runtime is unsupported
        environ: Environment used for proxy lookup when no resolver is given
    """

    def __init__(
        self,
        database: Database,
        bus: EventBus,
        config: Optional[Dict[str, Any]] = None,
        transport_factory: Optional[TransportFactory] = None,
        proxy_resolver: Optional[ProxyResolver] = None,
        runtime_check: Callable[[], Optional[str]] = check_runtime,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.db = database
        self.bus = bus
        self.config = config or {}
        mirror_config = self.config.get("mirror") or {}
        proxy_config = (self.config.get("http") or {}).get("proxy") or {}

        self.base_url = mirror_config.get("base_url", NSP_API_BASE_URL)
        self.deadline_seconds = mirror_config.get("deadline_seconds")
        self.transport_factory = transport_factory or TransportFactory(
            timeout_seconds=mirror_config.get("timeout_seconds", 30.0)
        )
        self.proxy_resolver = proxy_resolver or ProxyResolver(proxy_config, environ=environ)
        self.runtime_check = runtime_check
        self.synchronizer = Synchronizer(database, bus)

        self.state = TaskState.IDLE
        self.last_metrics: Optional[RunMetrics] = None
        self._lock = threading.Lock()
        self._handlers = {
            EventKind.MIRROR_REQUESTED: self._on_mirror_requested,
        }

        bus.subscribe(EventKind.MIRROR_REQUESTED, self.inform)

    def inform(self, event: Event) -> None:
        """Handle an inbound event; kinds without a handler are ignored."""
        handler = self._handlers.get(event.kind)
        if handler is None:
            return
        handler(event)

    def _on_mirror_requested(self, event: Event) -> None:
        try:
            self.run()
        except TaskBusyError as exc:
            logger.warning(str(exc))

    def _transition(self, new_state: TaskState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise TaskBusyError(f"NSP mirror cannot move from {self.state.value} to {new_state.value}")
        self.state = new_state

    def run(self, cancellation: Optional[CancellationToken] = None) -> RunMetrics:
        """
        Execute one mirror run.

        Returns:
            RunMetrics with the final state recorded in ``status``

        Raises:
            TaskBusyError: If a run is already in flight
        """
        with self._lock:
            if self.state is TaskState.RUNNING:
                raise TaskBusyError("NSP mirror is already running, ignoring trigger")
            self._transition(TaskState.RUNNING)

        metrics = None
        try:
            metrics = RunMetrics(run_id=self.db.get_current_run_id(), started_at=datetime.utcnow())
            self.last_metrics = metrics
            logger.info("Starting NSP mirroring task (%s)", metrics.run_id)

            reason = self.runtime_check()
            if reason:
                self._fail(metrics, f"Unable to mirror contents of Node Security Platform. {reason}")
            else:
                self._mirror(metrics, cancellation or CancellationToken(self.deadline_seconds))
        except Exception as exc:
            if self.state is TaskState.RUNNING:
                if metrics is None:
                    logger.error("NSP mirror could not start: %s", exc)
                    self._transition(TaskState.FAILED)
                else:
                    self._fail(metrics, f"{type(exc).__name__}: {exc}")
            raise
        finally:
            if metrics is not None:
                metrics.completed_at = datetime.utcnow()
                self._record(metrics)

        logger.info("NSP mirroring %s", metrics.status)
        return metrics

    def _mirror(self, metrics: RunMetrics, cancellation: CancellationToken) -> None:
        logger.info("Retrieving NSP advisories at %s", metrics.started_at.isoformat())
        normalizer = AdvisoryNormalizer(on_mapping_warning=metrics.record_mapping_warning)
        fetcher = AdvisoryFetcher(self.base_url)

        try:
            proxy_info = self.proxy_resolver.resolve()
            with self.transport_factory.build(proxy_info) as transport:
                for page in fetcher.fetch_all(transport, cancellation):
                    records = [normalizer.normalize(advisory) for advisory in page.advisories]
                    cancellation.raise_if_cancelled()
                    logger.info("Updating datasource with NSP advisories")
                    synced = self.synchronizer.sync(records)
                    metrics.record_page(len(page.advisories), synced)
            self.synchronizer.notify_reindex()
        except FeedError as exc:
            logger.debug("NSP mirror failure", exc_info=True)
            self._fail(metrics, f"An error occurred while retrieving NSP advisories: {exc}")
            return
        except Exception as exc:
            logger.debug("NSP mirror failure", exc_info=True)
            self._fail(metrics, f"{type(exc).__name__}: {exc}")
            raise

        self._transition(TaskState.COMPLETED)
        metrics.status = self.state.value

    def _fail(self, metrics: RunMetrics, reason: str) -> None:
        logger.error(reason)
        metrics.record_error(reason)
        metrics.failure_reason = reason
        self._transition(TaskState.FAILED)
        metrics.status = self.state.value

    def _record(self, metrics: RunMetrics) -> None:
        try:
            self.db.record_run(metrics)
        except Exception as exc:
            logger.warning("Could not record mirror run %s: %s", metrics.run_id, exc)
