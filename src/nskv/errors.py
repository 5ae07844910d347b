"""Custom exceptions for the nskv storage adapter.

This module defines the exception hierarchy raised by the adapter. Every error
carries a human-readable message and a machine-readable code so that the
storage layer above can map failures without string matching.
"""

from typing import Optional


class NskvError(Exception):
    """Base exception for all adapter errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
    """

    def __init__(self, message: str, code: str) -> None:
        """Initialize adapter error.

        Args:
            message: Human-readable error description
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code


class StoreConnectionError(NskvError):
    """Raised when the Redis transport cannot be established."""

    def __init__(self, target: str, reason: str) -> None:
        """Initialize connection error.

        Args:
            target: Host/port or socket path that was dialed
            reason: Underlying failure description
        """
        super().__init__(
            message=f"Cannot connect to Redis at {target}: {reason}",
            code="connection_error",
        )
        self.target = target


class AuthError(NskvError):
    """Raised when the configured credential is rejected by the server.

    The connection handle is left unusable; no retry is attempted.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(
            message=f"Redis authentication failed: {reason}",
            code="auth_error",
        )


class SelectError(NskvError):
    """Raised when the configured logical database cannot be selected."""

    def __init__(self, database: int, reason: str) -> None:
        """Initialize select error.

        Args:
            database: Logical database index that was requested
            reason: Underlying failure description
        """
        super().__init__(
            message=f"Cannot select Redis database {database}: {reason}",
            code="select_error",
        )
        self.database = database


class ConnectionStateError(NskvError):
    """Raised when an operation is invalid for the current connection state."""

    def __init__(self, current_state: str, operation: str) -> None:
        """Initialize connection state error.

        Args:
            current_state: State the connection handle is in
            operation: The operation that was attempted
        """
        super().__init__(
            message=f"Cannot perform '{operation}' while connection is '{current_state}'",
            code="connection_state_error",
        )
        self.current_state = current_state
        self.operation = operation


class CloseError(NskvError):
    """Raised when the connection cannot be closed gracefully."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            message=f"Error closing Redis connection: {reason}",
            code="close_error",
        )


class PatternUnsupportedError(NskvError):
    """Raised when a find_keys pattern cannot be served from the namespace index."""

    def __init__(self, pattern: str) -> None:
        """Initialize pattern unsupported error.

        Args:
            pattern: The rejected key pattern
        """
        super().__init__(
            message=(
                f"Unsupported key pattern '{pattern}': only patterns like 'pad:*' "
                "are supported when the exclusion pattern is '*:*:*'"
            ),
            code="pattern_unsupported",
        )
        self.pattern = pattern


class ExclusionUnsupportedError(NskvError):
    """Raised when find_keys receives an exclusion pattern other than '*:*:*'."""

    def __init__(self, exclusion_pattern: str) -> None:
        """Initialize exclusion unsupported error.

        Args:
            exclusion_pattern: The rejected exclusion pattern
        """
        super().__init__(
            message=(
                f"Unsupported exclusion pattern '{exclusion_pattern}': "
                "only '*:*:*' is supported"
            ),
            code="exclusion_unsupported",
        )
        self.exclusion_pattern = exclusion_pattern


class BatchError(NskvError):
    """Raised when an atomic batch is aborted.

    When raised, none of the batch's operations have taken effect.
    """

    def __init__(self, message: str, code: str = "batch_error") -> None:
        super().__init__(message=message, code=code)


class InvalidOperationError(BatchError):
    """Raised when a batch item is malformed; nothing is submitted."""

    def __init__(self, index: int, reason: str) -> None:
        """Initialize invalid operation error.

        Args:
            index: Position of the offending item within the batch
            reason: Why the item was rejected
        """
        super().__init__(
            message=f"Invalid batch operation at position {index}: {reason}",
            code="invalid_operation",
        )
        self.index = index


class ReservedKeyError(NskvError):
    """Raised when a write targets the keyspace reserved for namespace indexes."""

    def __init__(self, key: str, prefix: str) -> None:
        super().__init__(
            message=f"Key '{key}' is reserved: keys under '{prefix}' hold namespace indexes",
            code="reserved_key",
        )
        self.key = key


class TransientStoreError(NskvError):
    """Raised when a single-key operation fails at the network or protocol level."""

    def __init__(self, operation: str, reason: str, key: Optional[str] = None) -> None:
        """Initialize transient store error.

        Args:
            operation: The store operation that failed
            reason: Underlying failure description
            key: Optional key the operation targeted
        """
        if key is not None:
            message = f"Redis {operation} failed for key '{key}': {reason}"
        else:
            message = f"Redis {operation} failed: {reason}"

        super().__init__(message=message, code="transient_store_error")
        self.operation = operation
        self.key = key


class InvalidValueError(NskvError):
    """Raised when a value is not text.

    Values are stored and returned as str. Writing bytes, or reading a stored
    value that is not valid UTF-8, fails with this error.
    """

    def __init__(self, key: str, reason: str) -> None:
        """Initialize invalid value error.

        Args:
            key: Key whose value was rejected
            reason: Why the value was rejected
        """
        super().__init__(
            message=f"Invalid value for key '{key}': {reason}",
            code="invalid_value",
        )
        self.key = key
