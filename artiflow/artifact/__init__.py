"""
Structured artifact streaming engine.

A producer opens a StreamingSession from a kind's Descriptor, publishes
partial deltas with update(), and ends with complete() or error(). Consumers
subscribe to the session or read the store its ArtifactWriter populates.

- Descriptors: one per artifact kind (schema, defaults, version, merge policy)
- Sessions: streaming -> complete | error, no transitions after a terminal state
- Writers: non-destructive, id-keyed merges into an external store
- Aggregation: derived progress/summary fields recomputed per delta
"""

from .aggregation import (
    add_tool_result,
    compute_plan_progress,
    summarize_tool_calls,
    update_execution_plan_progress,
)
from .cancellation import CancellationToken
from .data import ArtifactData
from .descriptor import APPEND, REPLACE, Descriptor, define
from .errors import (
    ArtifactFailure,
    ArtifactValidationError,
    ErrorCause,
    InvalidStepTransition,
    SessionClosedError,
    UnknownKindError,
)
from .journal import ArtifactJournal, JournalArtifactWriter, JournalEntry
from .kinds import (
    EVALUATION,
    EXECUTION_PLAN,
    PAGE_CONTEXT,
    SUMMARIZATION,
    TOOL_RESULTS,
    get_descriptor,
    list_kinds,
    parse_envelope,
    require_descriptor,
)
from .metadata import (
    STATUS_COMPLETE,
    STATUS_ERROR,
    STATUS_STREAMING,
    ArtifactMetadata,
)
from .result import ValidationResult
from .schema import ArtifactModel
from .session import StreamingSession
from .util import new_artifact_id, new_ulid
from .writer import (
    ArtifactEntry,
    ArtifactStore,
    ArtifactWriter,
    CompositeArtifactWriter,
    MessageArtifactWriter,
    MessageLog,
    NullArtifactWriter,
    StoreArtifactWriter,
)

__all__ = [
    # Metadata
    "ArtifactMetadata",
    "STATUS_STREAMING",
    "STATUS_COMPLETE",
    "STATUS_ERROR",
    # Descriptors and data
    "ArtifactModel",
    "Descriptor",
    "define",
    "REPLACE",
    "APPEND",
    "ArtifactData",
    "ValidationResult",
    # Sessions
    "StreamingSession",
    "CancellationToken",
    # Errors
    "ArtifactFailure",
    "ArtifactValidationError",
    "ErrorCause",
    "InvalidStepTransition",
    "SessionClosedError",
    "UnknownKindError",
    # Writers
    "ArtifactWriter",
    "ArtifactEntry",
    "ArtifactStore",
    "StoreArtifactWriter",
    "MessageArtifactWriter",
    "MessageLog",
    "CompositeArtifactWriter",
    "NullArtifactWriter",
    "ArtifactJournal",
    "JournalArtifactWriter",
    "JournalEntry",
    # Kinds
    "EXECUTION_PLAN",
    "TOOL_RESULTS",
    "PAGE_CONTEXT",
    "EVALUATION",
    "SUMMARIZATION",
    "get_descriptor",
    "require_descriptor",
    "list_kinds",
    "parse_envelope",
    # Aggregation
    "update_execution_plan_progress",
    "add_tool_result",
    "compute_plan_progress",
    "summarize_tool_calls",
    # IDs
    "new_artifact_id",
    "new_ulid",
]
