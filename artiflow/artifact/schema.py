"""
Base model for artifact kind schemas.

Python attributes are snake_case; the wire and partial-data keys are camelCase.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ArtifactModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_data(self) -> dict[str, Any]:
        """Dump to a partial-data dict keyed by wire names (unset optionals dropped)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
