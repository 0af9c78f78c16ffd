"""Reusable base models for persisted and wire-level data."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    A base model that converts field names to camel case when serializing.

    For example, the field name `last_synced_at` in a Python model will be
    represented as `lastSyncedAt` when it is serialized to JSON.

    Everything the engine persists or exchanges with collaborators goes
    through this model, so stored documents and message payloads share
    one naming convention.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
        arbitrary_types_allowed=True,
    )

    def to_json(self) -> str:
        """Serialize to camelCase JSON, omitting unset optional fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class StrictBaseModel(CamelModel):
    """A strict, immutable pydantic base model."""

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
        "strict": True,
    }
