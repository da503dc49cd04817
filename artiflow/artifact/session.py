"""
Streaming session: the per-instance artifact state machine.

    streaming --complete()--> complete
    streaming --error()-----> error

Both terminal states are final. While streaming, `update()` shallow-merges a
delta into the accumulated value, forwards the delta to the writer, bumps
updated_at and synchronously notifies subscribers with the merged value.

A session is driven by one producer at a time; sessions for different
artifact ids share no mutable state and can run concurrently.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, Mapping, TypeVar

from ..config import EngineConfig
from .data import ArtifactData
from .errors import ArtifactFailure, ErrorCause, SessionClosedError
from .metadata import STATUS_COMPLETE, STATUS_ERROR, STATUS_STREAMING, ArtifactMetadata
from .util import new_artifact_id, now_ms

if TYPE_CHECKING:
    from .cancellation import CancellationToken
    from .descriptor import Descriptor
    from .writer import ArtifactWriter

logger = logging.getLogger(__name__)

T = TypeVar("T")

DataListener = Callable[[dict[str, Any]], None]
StatusListener = Callable[[ArtifactMetadata, "ArtifactFailure | None"], None]


@dataclass(eq=False)
class _Subscription:
    listener: Callable[..., None]


class StreamingSession(Generic[T]):
    """Accumulates one artifact instance and publishes it through a writer."""

    def __init__(
        self,
        descriptor: Descriptor[T],
        writer: ArtifactWriter,
        *,
        token: CancellationToken | None = None,
        config: EngineConfig | None = None,
    ):
        self.descriptor = descriptor
        self.writer = writer
        self.config = config or EngineConfig()
        self.failure: ArtifactFailure | None = None

        created = now_ms()
        self.id = new_artifact_id(descriptor.kind, timestamp_ms=created)
        self._metadata = ArtifactMetadata(
            id=self.id,
            type=descriptor.kind,
            version=descriptor.version,
            created_at=created,
            updated_at=created,
            status=STATUS_STREAMING,
        )
        self._current: dict[str, Any] = descriptor.defaults()
        self._listeners: list[_Subscription] = []
        self._status_listeners: list[_Subscription] = []
        self._release_token: Callable[[], None] | None = None

        self.writer.write_metadata(self.id, self._metadata.to_dict())
        logger.debug(f"Opened {descriptor.kind} stream {self.id}")

        if token is not None:
            self.bind(token)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def metadata(self) -> ArtifactMetadata:
        return self._metadata

    @property
    def status(self) -> str:
        return self._metadata.status

    @property
    def terminal(self) -> bool:
        return self._metadata.terminal

    @property
    def current(self) -> dict[str, Any]:
        """Copy of the accumulated value."""
        return copy.deepcopy(self._current)

    def snapshot(self) -> ArtifactData[T]:
        """Point-in-time copy of the accumulated value (for late subscribers)."""
        return ArtifactData(
            metadata=self._metadata,
            data=copy.deepcopy(self._current),
            descriptor=self.descriptor,
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def update(self, delta: Mapping[str, Any]) -> None:
        """Merge `delta`, publish it, and notify subscribers with the merged value."""
        if self.terminal:
            self._reject("update")
            return
        if not isinstance(delta, Mapping):
            raise TypeError(f"delta must be a mapping, got {type(delta).__name__}")

        delta = copy.deepcopy(dict(delta))
        self._current = self.descriptor.merge(self._current, delta)
        # Writers replace top-level keys, so APPEND fields go out as their merged list.
        published = {key: copy.deepcopy(self._current[key]) for key in delta}
        self.writer.write_data(self.id, published)
        self._metadata = self._metadata.touched(now_ms())
        self.writer.write_metadata(self.id, {"updatedAt": self._metadata.updated_at})

        for sub in list(self._listeners):
            sub.listener(copy.deepcopy(self._current))

    def complete(self, *, validate: bool = False) -> ArtifactData[T]:
        """
        Mark the artifact complete and return a snapshot of its final value.

        With `validate=True` an invalid accumulated value fails the session
        (cause: schema_mismatch) and raises ArtifactValidationError instead.
        """
        if self.terminal:
            self._reject("complete")
            return self.snapshot()

        if validate:
            result = self.snapshot().validate_result()
            if result.error is not None:
                self.error(str(result.error), cause=ErrorCause.SCHEMA_MISMATCH)
                raise result.error

        self._metadata = self._metadata.with_status(STATUS_COMPLETE, now_ms())
        self.writer.write_complete(self.id, self._metadata.updated_at)
        logger.debug(f"Completed {self.descriptor.kind} stream {self.id}")
        self._finish()
        return self.snapshot()

    def error(self, message: str, cause: ErrorCause = ErrorCause.PRODUCER_FAILURE) -> None:
        """Mark the artifact failed. Never raises on a terminal session; the call is ignored."""
        if self.terminal:
            logger.debug(f"Ignoring error({message!r}) on {self.status} stream {self.id}")
            return

        self.failure = ArtifactFailure(cause=ErrorCause(cause), message=message)
        self._metadata = self._metadata.with_status(STATUS_ERROR, now_ms())
        self.writer.write_error(self.id, message, self._metadata.updated_at)
        logger.info(f"{self.descriptor.kind} stream {self.id} failed ({self.failure.cause.value}): {message}")
        self._finish()

    def _reject(self, operation: str) -> None:
        if self.config.strict_terminal:
            raise SessionClosedError(self.id, self.status, operation)
        logger.warning(f"Ignoring {operation}() on {self.status} stream {self.id}")

    def _finish(self) -> None:
        self._listeners.clear()
        if self._release_token is not None:
            self._release_token()
            self._release_token = None
        status_listeners, self._status_listeners = self._status_listeners, []
        for sub in status_listeners:
            sub.listener(self._metadata, self.failure)

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(self, listener: DataListener) -> Callable[[], None]:
        """
        Receive the merged value after every subsequent update().

        There is no replay: use `snapshot()` for the value accumulated so far.
        Returns an unsubscribe function.
        """
        return self._add(self._listeners, listener)

    def subscribe_status(self, listener: StatusListener) -> Callable[[], None]:
        """Receive `(metadata, failure)` once, when the session reaches a terminal state."""
        return self._add(self._status_listeners, listener)

    def _add(self, listeners: list[_Subscription], listener: Callable[..., None]) -> Callable[[], None]:
        sub = _Subscription(listener)
        if not self.terminal:
            listeners.append(sub)

        def unsubscribe() -> None:
            if sub in listeners:
                listeners.remove(sub)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Cancellation and scoping
    # -------------------------------------------------------------------------

    def bind(self, token: CancellationToken) -> None:
        """Fail this session when `token` is cancelled (immediately if it already is)."""
        if self._release_token is not None:
            self._release_token()
            self._release_token = None
        release = token.add_callback(self._on_cancel)
        if not self.terminal:
            self._release_token = release

    def _on_cancel(self, cause: ErrorCause, message: str) -> None:
        self.error(message, cause=cause)

    def __enter__(self) -> StreamingSession[T]:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.terminal:
            return None
        if exc_type is None:
            self.complete()
        elif issubclass(exc_type, (asyncio.CancelledError, KeyboardInterrupt)):
            self.error("cancelled", cause=ErrorCause.CANCELLED)
        else:
            self.error(f"{exc_type.__name__}: {exc}", cause=ErrorCause.PRODUCER_FAILURE)
        return None

    async def __aenter__(self) -> StreamingSession[T]:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return self.__exit__(exc_type, exc, tb)

    def __repr__(self) -> str:
        return f"StreamingSession(id={self.id!r}, kind={self.descriptor.kind!r}, status={self.status!r})"
