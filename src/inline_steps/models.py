"""Base Pydantic models for injection entities.

This module defines the foundational model classes used by every record
that flows through the injection pipeline: matches, assignments, edit
operations, comment formats, and wire messages.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for pipeline records.

    Records are produced by one pipeline stage and consumed read-only by
    the next one, so every instance is frozen after construction.

    Design principles enforced by this model:
        - Immutability: a match, an assignment or an edit operation can not
          be altered by a later stage.
        - Strict schema validation: unknown fields are rejected to surface
          typos in hand-built records and plugin declarations.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class MessageModel(BaseModel):
    """Base model for request and response messages.

    Messages are exchanged with a host process as JSON objects using
    camel-case names (`sourceContent`, `stepCount`). Python code refers
    to the same fields by their snake-case attribute names.

    Unknown request fields are ignored so hosts may send additional
    envelope data without breaking the contract.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra='ignore',
    )

    def dump(self) -> dict:
        """Serialize the message using wire names."""
        return self.model_dump(by_alias=True, mode='json')


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Settings are resolved from environment variables once per process
    and never modified afterwards. Unrelated variables in the environment
    are ignored.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
