"""
Artifact data: metadata plus a (possibly partial) payload, with behavior.

`ArtifactData` is always bound to the descriptor of its kind, which supplies
validation and merge semantics. Plain envelopes recovered from JSON have no
behavior until `Descriptor.parse()` binds them.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Mapping, TypeVar

from .errors import ArtifactValidationError
from .metadata import ArtifactMetadata
from .result import ValidationResult
from .util import now_ms

if TYPE_CHECKING:
    from .descriptor import Descriptor

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ArtifactData(Generic[T]):
    """
    Point-in-time artifact value.

    Instances are never mutated; `merge()` returns a new instance.
    """

    metadata: ArtifactMetadata
    data: dict[str, Any]
    descriptor: Descriptor[T] = field(repr=False, compare=False)

    @property
    def kind(self) -> str:
        return self.metadata.type

    def validate(self) -> T | None:
        """
        Validate the payload against the kind's schema.

        Never raises: an invalid shape is logged and reported as None.
        Use `validate_result()` to tell an invalid shape from a missing value.
        """
        result = self.validate_result()
        if result.error is not None:
            logger.warning(f"Artifact validation failed for {self.kind} ({self.metadata.id}): {result.error}")
            return None
        return result.value

    def validate_result(self) -> ValidationResult[T]:
        try:
            return ValidationResult.success(self.descriptor.validate(self.data))
        except ArtifactValidationError as e:
            return ValidationResult.failure(e)

    def merge(self, update: Mapping[str, Any]) -> ArtifactData[T]:
        """Return a copy with `update` merged in and updated_at bumped."""
        return ArtifactData(
            metadata=self.metadata.touched(now_ms()),
            data=self.descriptor.merge(copy.deepcopy(self.data), copy.deepcopy(dict(update))),
            descriptor=self.descriptor,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the `{metadata, data}` envelope."""
        return {
            "metadata": self.metadata.to_dict(),
            "data": copy.deepcopy(self.data),
        }

    def serialize(self) -> str:
        """Serialize to a JSON string (single line)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))
