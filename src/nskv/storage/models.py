"""Data models for the storage adapter.

This module defines the connection lifecycle states and the batch operation
model accepted by ``do_bulk``.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator


class ConnectionState(str, Enum):
    """Lifecycle states of the connection handle.

    Transitions only move forward; a handle never re-enters an earlier state.
    """

    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    SELECTING_DATABASE = "selecting_database"
    READY = "ready"
    CLOSED = "closed"


class OperationKind(str, Enum):
    """Kinds of mutation a batch operation can apply."""

    SET = "set"
    REMOVE = "remove"


class Operation(BaseModel):
    """A single mutation within an atomic batch.

    The upstream storage layer names the kind field ``type``; both ``type``
    and ``kind`` are accepted.

    Attributes:
        key: Key to mutate
        kind: Whether to set or remove the key
        value: Serialized text value (required for set, ignored for remove)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str = Field(..., description="Key to mutate")
    kind: OperationKind = Field(..., alias="type", description="Mutation kind")
    value: Optional[StrictStr] = Field(default=None, description="Serialized text value")

    @model_validator(mode="after")
    def validate_value_for_set(self) -> "Operation":
        """Validate that set operations carry a value.

        Returns:
            The validated operation

        Raises:
            ValueError: If a set operation has no value
        """
        if self.kind == OperationKind.SET and self.value is None:
            raise ValueError("set operation requires a value")
        return self
