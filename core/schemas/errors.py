"""
Schemas - Errors
File: errors.py

Purpose: Standard error taxonomy for the sealed message registry.
Defines both a Pydantic model for structured error communication
and Python exceptions for control flow.

Every registry precondition is checked before state is touched, so any
exception raised from a registry operation leaves the committed state
exactly as it was.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Lifecycle
    ALREADY_INITIALIZED = "ALREADY_INITIALIZED"
    NOT_INITIALIZED = "NOT_INITIALIZED"

    # Authorization
    NOT_ADMIN = "NOT_ADMIN"
    SENDER_MISMATCH = "SENDER_MISMATCH"

    # Capacity
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    STORE_FULL = "STORE_FULL"

    # Merkle consistency
    WITNESS_MISMATCH = "WITNESS_MISMATCH"

    # Enrollment
    ALREADY_ENROLLED = "ALREADY_ENROLLED"

    # Write-once
    ALREADY_DEPOSITED = "ALREADY_DEPOSITED"

    # Message format
    INVALID_MESSAGE_FORMAT = "INVALID_MESSAGE_FORMAT"

    # Schema, serialization & storage
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"
    STATE_IO_ERROR = "STATE_IO_ERROR"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class RegistryError(BaseModel):
    """
    Error model for structured error communication.

    Used by the CLI's JSON output and anywhere an error has to cross a
    serialization boundary instead of being raised.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.WITNESS_MISMATCH],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the caller may refresh its inputs and retry",
    )

    def to_exception(self) -> "RegistryException":
        """Convert this error model to a raised exception."""
        return RegistryException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class RegistryException(Exception):
    """
    Base exception for all registry errors.

    Carries structured error information and can be converted to/from
    RegistryError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "REGISTRY_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> RegistryError:
        """Convert this exception to a RegistryError model."""
        return RegistryError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class LifecycleException(RegistryException):
    """Operation attempted in the wrong lifecycle state (double init, use before init)."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.NOT_INITIALIZED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details, retryable=False)


class AuthorizationException(RegistryException):
    """Caller identity does not match the identity the operation requires."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.NOT_ADMIN,
        caller: str | None = None,
        expected: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if caller is not None:
            full_details["caller"] = caller
        if expected is not None:
            full_details["expected"] = expected
        super().__init__(message=message, code=code, details=full_details, retryable=False)


class CapacityException(RegistryException):
    """The registry (or the backing tree) cannot admit another address."""

    def __init__(
        self,
        message: str,
        limit: int | None = None,
        code: str = ErrorCodes.CAPACITY_EXCEEDED,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if limit is not None:
            full_details["limit"] = limit
        super().__init__(message=message, code=code, details=full_details, retryable=False)


class ConsistencyException(RegistryException):
    """
    A witness does not reproduce the committed root.

    Covers stale witnesses, wrong indices, occupied slots and records that
    were never enrolled. Retryable: the caller should refresh its witness.
    """

    def __init__(
        self,
        message: str,
        leaf_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        super().__init__(
            message=message,
            code=ErrorCodes.WITNESS_MISMATCH,
            details=full_details,
            retryable=True,
        )


class WriteOnceException(RegistryException):
    """A message has already been deposited for this address."""

    def __init__(
        self,
        message: str,
        address: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if address is not None:
            full_details["address"] = address
        super().__init__(
            message=message,
            code=ErrorCodes.ALREADY_DEPOSITED,
            details=full_details,
            retryable=False,
        )


class DuplicateAddressException(RegistryException):
    """The address already occupies a slot in the record store."""

    def __init__(
        self,
        message: str,
        address: str | None = None,
        leaf_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if address is not None:
            full_details["address"] = address
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        super().__init__(
            message=message,
            code=ErrorCodes.ALREADY_ENROLLED,
            details=full_details,
            retryable=False,
        )


class FormatException(RegistryException):
    """A message is malformed: zero, outside the field, or against the flag policy."""

    def __init__(
        self,
        message: str,
        flags: tuple[bool, ...] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if flags is not None:
            full_details["flags"] = [int(f) for f in flags]
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_MESSAGE_FORMAT,
            details=full_details,
            retryable=False,
        )




class CanonicalizationException(RegistryException):
    """Exception raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
            retryable=False,
        )


class StateIOException(RegistryException):
    """Persisted registry state is missing, corrupt or inconsistent."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if path is not None:
            full_details["path"] = path
        super().__init__(
            message=message,
            code=ErrorCodes.STATE_IO_ERROR,
            details=full_details,
            retryable=False,
        )
