"""
Artifact kind descriptors.

A descriptor registers one artifact kind: its schema, default partial value,
version, and per-field merge policy. It is the factory for complete
snapshots (`create`), streaming sessions (`stream`), and the entry point for
validation and deserialization.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from .data import ArtifactData
from .errors import ArtifactValidationError
from .metadata import STATUS_COMPLETE, ArtifactMetadata
from .util import new_artifact_id, now_ms

if TYPE_CHECKING:
    from ..config import EngineConfig
    from .cancellation import CancellationToken
    from .session import StreamingSession
    from .writer import ArtifactWriter

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Merge policies
REPLACE = "replace"  # top-level value replaced wholesale
APPEND = "append"  # list value extended with the delta's items

MERGE_POLICIES = frozenset({REPLACE, APPEND})


@dataclass(frozen=True, eq=False)
class Descriptor(Generic[T]):
    """Registration of one artifact kind."""

    kind: str
    schema: type[T]
    version: int = 1
    default_data: Mapping[str, Any] = field(default_factory=dict)
    merge_policy: Mapping[str, str] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self) -> None:
        if not self.kind or self.kind != self.kind.strip():
            raise ValueError(f"Invalid artifact kind: {self.kind!r}")
        if self.version <= 0:
            raise ValueError("version must be a positive integer")
        bad = {k: v for k, v in self.merge_policy.items() if v not in MERGE_POLICIES}
        if bad:
            raise ValueError(f"Unknown merge policy for {self.kind}: {bad}")
        # Freeze so a shared descriptor cannot be mutated through its defaults.
        object.__setattr__(self, "default_data", MappingProxyType(copy.deepcopy(dict(self.default_data))))
        object.__setattr__(self, "merge_policy", MappingProxyType(dict(self.merge_policy)))

    def defaults(self) -> dict[str, Any]:
        """Fresh, independent copy of the default partial value."""
        return copy.deepcopy(dict(self.default_data))

    def merge(self, current: Mapping[str, Any], delta: Mapping[str, Any]) -> dict[str, Any]:
        """
        Merge `delta` into `current` at the top level.

        Fields default to REPLACE: nested objects and lists are replaced, not
        deep-merged. APPEND fields extend the existing list instead.
        """
        merged = dict(current)
        for key, value in delta.items():
            existing = merged.get(key)
            if self.merge_policy.get(key, REPLACE) == APPEND and isinstance(existing, list) and isinstance(value, list):
                merged[key] = [*existing, *value]
            else:
                merged[key] = value
        return merged

    def _bind(self, metadata: ArtifactMetadata, data: dict[str, Any]) -> ArtifactData[T]:
        return ArtifactData(metadata=metadata, data=data, descriptor=self)

    def create(self, data: Mapping[str, Any] | None = None) -> ArtifactData[T]:
        """Build a complete (non-streaming) artifact from defaults plus `data`."""
        created = now_ms()
        merged = {**self.defaults(), **copy.deepcopy(dict(data or {}))}
        metadata = ArtifactMetadata(
            id=new_artifact_id(self.kind, timestamp_ms=created),
            type=self.kind,
            version=self.version,
            created_at=created,
            updated_at=created,
            status=STATUS_COMPLETE,
        )
        return self._bind(metadata, merged)

    def validate(self, raw: Any) -> T:
        """Parse `raw` with the schema, raising ArtifactValidationError on mismatch."""
        try:
            return self.schema.model_validate(raw)
        except ValidationError as e:
            raise ArtifactValidationError.from_pydantic(self.kind, e) from e

    def parse(self, payload: str | bytes) -> ArtifactData[T]:
        """
        Deserialize a `{metadata, data}` envelope and bind it to this kind.

        The payload is not validated against the schema here; call
        `validate()` on the result for that.
        """
        envelope = json.loads(payload)
        if not isinstance(envelope, dict):
            raise ValueError("Artifact envelope must be a JSON object")
        raw_metadata = envelope.get("metadata")
        raw_data = envelope.get("data")
        if not isinstance(raw_metadata, dict):
            raise ValueError("Artifact envelope missing 'metadata' object")
        if not isinstance(raw_data, dict):
            raise ValueError("Artifact envelope missing 'data' object")

        metadata = ArtifactMetadata.from_dict(raw_metadata)
        if metadata.type != self.kind:
            raise ValueError(f"Envelope is a {metadata.type!r} artifact, expected {self.kind!r}")
        if metadata.version != self.version:
            logger.warning(f"{self.kind} envelope {metadata.id} has version {metadata.version}, registry has {self.version}")
        return self._bind(metadata, raw_data)

    def stream(
        self,
        writer: ArtifactWriter,
        *,
        token: CancellationToken | None = None,
        config: EngineConfig | None = None,
    ) -> StreamingSession[T]:
        """Open a streaming session that publishes through `writer`."""
        from .session import StreamingSession

        return StreamingSession(self, writer, token=token, config=config)


def define(
    kind: str,
    schema: type[T],
    default_data: Mapping[str, Any] | None = None,
    *,
    version: int = 1,
    merge_policy: Mapping[str, str] | None = None,
    description: str = "",
) -> Descriptor[T]:
    """Factory for descriptors."""
    return Descriptor(
        kind=kind,
        schema=schema,
        version=version,
        default_data=default_data or {},
        merge_policy=merge_policy or {},
        description=description,
    )
