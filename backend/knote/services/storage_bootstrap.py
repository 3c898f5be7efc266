"""
KNote Backend — Object Store Bootstrap
=======================================

What:  Establishes and verifies the object store connection and bucket once,
       at process start, with a retry policy.
Why:   Attachments need a live client; in container deployments MinIO often
       starts after this service, so the first attempts are expected to fail.
How:   Each attempt builds a client, checks the bucket and creates it if
       absent. Attempts run under a tenacity `Retrying` built from a
       RetryPolicy: fixed backoff, unbounded by default, cancellable.
Who:   Run by the FastAPI lifespan in a worker thread; AttachmentService reads
       the resulting StorageHandle.

Outcomes:
    CONNECTED    client retained in the handle for the process lifetime
    UNAVAILABLE  reconnect disabled (or attempts exhausted / cancelled):
                 the service starts anyway, attachments raise
                 StorageUnavailableError, notes keep working

Bucket check-then-create is not atomic. Two instances bootstrapping at once
may both try to create it; the loser gets "already owned" which is accepted.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    stop_when_event_set,
    wait_fixed,
)

from knote.config import Settings, settings
from knote.exceptions import StorageBootstrapFailure, StorageUnavailableError
from knote.services.object_store import ObjectStore, S3ObjectStore

logger = logging.getLogger(__name__)


class StorageState(str, Enum):
    PENDING = "pending"
    CONNECTED = "connected"
    UNAVAILABLE = "unavailable"


class StorageHandle:
    """
    Process-wide holder of the object store client.

    Starts PENDING; the bootstrapper moves it to CONNECTED or UNAVAILABLE
    exactly once. Reading `client` in any state but CONNECTED raises
    StorageUnavailableError.
    """

    def __init__(self, bucket: str):
        self.bucket = bucket
        self.state = StorageState.PENDING
        self.reason: Optional[str] = None
        self._client: Optional[ObjectStore] = None

    @property
    def client(self) -> ObjectStore:
        if self.state is not StorageState.CONNECTED or self._client is None:
            raise StorageUnavailableError(
                context={"state": self.state.value, "reason": self.reason},
            )
        return self._client

    @property
    def is_connected(self) -> bool:
        return self.state is StorageState.CONNECTED

    def mark_connected(self, client: ObjectStore) -> None:
        self._client = client
        self.reason = None
        self.state = StorageState.CONNECTED

    def mark_unavailable(self, reason: str) -> None:
        self._client = None
        self.reason = reason
        self.state = StorageState.UNAVAILABLE


@dataclass(frozen=True)
class RetryPolicy:
    """
    How long and how often the bootstrap keeps trying.

    max_attempts=None retries until success or cancellation.
    """

    backoff_seconds: float = 5.0
    max_attempts: Optional[int] = None

    def build_retrying(self, reconnect_enabled: bool, cancel_event: threading.Event) -> Retrying:
        if not reconnect_enabled:
            stop = stop_after_attempt(1)
        elif self.max_attempts is not None:
            stop = stop_after_attempt(self.max_attempts)
        else:
            stop = stop_never
        return Retrying(
            retry=retry_if_exception_type(StorageBootstrapFailure),
            stop=stop | stop_when_event_set(cancel_event),
            wait=wait_fixed(self.backoff_seconds),
            # Event.wait returns early on cancel(), ending the backoff
            sleep=cancel_event.wait,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )


class StorageBootstrapper:
    """Runs the startup handshake and records the outcome in a StorageHandle."""

    def __init__(
        self,
        handle: StorageHandle,
        client_factory: Callable[[], ObjectStore],
        policy: Optional[RetryPolicy] = None,
        reconnect_enabled: bool = True,
    ):
        self.handle = handle
        self.client_factory = client_factory
        self.policy = policy or RetryPolicy()
        self.reconnect_enabled = reconnect_enabled
        self.attempts = 0
        self._cancelled = threading.Event()

    @classmethod
    def from_settings(cls, settings: Settings, handle: StorageHandle) -> "StorageBootstrapper":
        return cls(
            handle=handle,
            client_factory=lambda: S3ObjectStore.from_settings(settings),
            policy=RetryPolicy(
                backoff_seconds=settings.minio_reconnect_interval,
                max_attempts=settings.minio_max_attempts,
            ),
            reconnect_enabled=settings.minio_reconnect_enabled,
        )

    def cancel(self) -> None:
        """Stop retrying: interrupts the current backoff and prevents further attempts."""
        self._cancelled.set()

    def _attempt(self) -> ObjectStore:
        # tenacity starts the next attempt as soon as the backoff returns,
        # including when cancel() cut it short
        if self._cancelled.is_set():
            raise StorageBootstrapFailure(
                message="Object store bootstrap cancelled",
                context={"attempt": self.attempts, "cancelled": True},
            )
        self.attempts += 1
        bucket = self.handle.bucket
        try:
            client = self.client_factory()
            if client.bucket_exists(bucket):
                logger.info("Bucket %s already exists", bucket)
            else:
                client.make_bucket(bucket)
                logger.info("Bucket %s created", bucket)
            return client
        except Exception as e:
            logger.warning(
                "Object store bootstrap attempt %d failed: %s (reconnect=%s)",
                self.attempts,
                str(e),
                self.reconnect_enabled,
            )
            raise StorageBootstrapFailure(
                context={"attempt": self.attempts, "error_type": type(e).__name__},
            ) from e

    def ensure_ready(self) -> StorageState:
        """
        Block until the store is connected or the policy gives up.

        Returns:
            StorageState.CONNECTED or StorageState.UNAVAILABLE. Never raises
            for store failures; startup continues in degraded mode.
        """
        retrying = self.policy.build_retrying(self.reconnect_enabled, self._cancelled)
        try:
            client = retrying(self._attempt)
        except StorageBootstrapFailure as e:
            reason = str(e.__cause__ or e)
            self.handle.mark_unavailable(reason)
            logger.error(
                "Object store unavailable after %d attempt(s); image attachments are disabled",
                self.attempts,
            )
            return self.handle.state

        self.handle.mark_connected(client)
        logger.info("Object store initialized (bucket=%s)", self.handle.bucket)
        return self.handle.state


# ── Singleton Instances ───────────────────────────────────────────────────
# One client handle per process, filled in by the lifespan at startup
storage_handle = StorageHandle(bucket=settings.minio_bucket)
storage_bootstrapper = StorageBootstrapper.from_settings(settings, storage_handle)
