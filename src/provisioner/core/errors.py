"""
Structured error types for schema provisioning.

Every failure the provisioner can surface is a typed ``ProvisionerError``
carrying a category, a retry flag, structured context and the chained
underlying exception. Callers see either a clean boolean from the builder or
one of these errors, with the original database message preserved.

Manifesto:
    - **Typed failures:** One error class per way a provisioning run can die
    - **Nothing retried here:** Every provisioning failure is fatal for the
      attempt; ``retryable`` is ``False`` across the board
    - **Original message kept:** Database status strings ride along as
      attributes, never reformatted away
    - **Error chaining:** Underlying exceptions are kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     ProvisionerError                         │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  MissingResourceError     BundleTooLargeError                │
        │  (RESOURCE, path)         (PACKAGING, size, limit)           │
        │                                                              │
        │  UploadFailedError        ProcedureCallError                 │
        │  (DATABASE)               (DATABASE, raised by clients)      │
        │                                                              │
        │  DDLFailedError           ProcedureDefinitionFailedError     │
        │  (SCHEMA, statement)      (SCHEMA, statement)                │
        │                                                              │
        │  InvalidSpecError                                            │
        │  (CONFIG)                                                    │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = BundleTooLargeError(size=60_000_000, limit=47_185_920.0)
    >>> error.retryable
    False
    >>> error.category
    <ErrorCategory.PACKAGING: 'PACKAGING'>

    >>> error = DDLFailedError("CREATE TABLE t (a int);", "unexpected token")
    >>> error.to_dict()["context"]["statement"]
    'CREATE TABLE t (a int);'

Guardrails:
    ❌ DON'T: Raise bare ``Exception`` from provisioning code
    ✅ DO: Raise the matching ``ProvisionerError`` subclass

    ❌ DON'T: Drop the database's status string
    ✅ DO: Pass it as ``status_message`` and the exception as ``cause``

Tags:
    error-handling, exception-hierarchy, provisioning, schema, ddl

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and alert routing."""

    RESOURCE = "RESOURCE"         # Embedded class / archive not found
    PACKAGING = "PACKAGING"       # Bundle creation or size budget
    DATABASE = "DATABASE"         # Database rejected a call
    SCHEMA = "SCHEMA"             # DDL or procedure definition failed
    CONFIG = "CONFIG"             # Invalid provisioning spec or settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Only fields that are set end up in :meth:`to_dict`, so log lines stay
    short.

    Attributes:
        bundle: Bundle file name of the provisioning run
        namespace: Target package / namespace of the procedures
        procedure: Database procedure that was being called
        statement: DDL or procedure statement being applied
        path: Resource or file path involved
        metadata: Additional key-value pairs
    """

    bundle: str | None = None
    namespace: str | None = None
    procedure: str | None = None
    statement: str | None = None
    path: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["bundle", "namespace", "procedure", "statement", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ProvisionerError(Exception):
    """
    Base exception for all provisioning errors.

    Subclasses set ``default_category`` and ``default_retryable`` so most
    call sites only pass a message.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ProvisionerError:
        """
        Add context to this error (fluent API).

        Usage:
            raise UploadFailedError("rejected").with_context(bundle="procs.jar")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# RESOURCE / PACKAGING ERRORS
# =============================================================================


class MissingResourceError(ProvisionerError):
    """A declared class file or archive is not in the embedded resources.

    Signals a packaging or deployment defect, so it is never retryable.
    """

    default_category = ErrorCategory.RESOURCE

    def __init__(self, path: str, message: str | None = None):
        super().__init__(
            message or f"Resource not found: {path}",
            context=ErrorContext(path=path),
        )
        self.path = path


class BundleTooLargeError(ProvisionerError):
    """The sealed bundle exceeds the transport's size budget."""

    default_category = ErrorCategory.PACKAGING

    def __init__(self, size: int, limit: float, name: str | None = None):
        label = f"Payload file {name}" if name else "Payload file"
        super().__init__(
            f"{label} is too big at {size}; max length is {limit}",
            context=ErrorContext(bundle=name, metadata={"size": size, "limit": limit}),
        )
        self.size = size
        self.limit = limit


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class ProcedureCallError(ProvisionerError):
    """The database answered a procedure call with a failure.

    Raised by :class:`~provisioner.core.protocols.ProcedureClient`
    implementations. Transport problems (sockets, timeouts) are *not*
    expressed with this class and propagate as whatever the client raises.
    """

    default_category = ErrorCategory.DATABASE

    def __init__(
        self,
        message: str,
        *,
        status: Any = None,
        procedure: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, context=ErrorContext(procedure=procedure), cause=cause)
        self.status = status
        self.status_string = message


class UploadFailedError(ProvisionerError):
    """The bundle upload call did not return success."""

    default_category = ErrorCategory.DATABASE

    def __init__(self, status_message: str, *, cause: Exception | None = None):
        super().__init__(
            f"Attempt to execute UpdateClasses failed:{status_message}",
            cause=cause,
        )
        self.status_message = status_message


class DDLFailedError(ProvisionerError):
    """A DDL statement failed for a reason other than a lost creation race."""

    default_category = ErrorCategory.SCHEMA

    def __init__(self, statement: str, status_message: str, *, cause: Exception | None = None):
        super().__init__(
            f"Attempt to execute '{statement}' failed:{status_message}",
            context=ErrorContext(statement=statement),
            cause=cause,
        )
        self.statement = statement
        self.status_message = status_message


class ProcedureDefinitionFailedError(ProvisionerError):
    """A procedure-definition statement failed after the DDL succeeded."""

    default_category = ErrorCategory.SCHEMA

    def __init__(self, statement: str, status_message: str, *, cause: Exception | None = None):
        super().__init__(
            f"Attempt to execute '{statement}' failed:{status_message}",
            context=ErrorContext(statement=statement),
            cause=cause,
        )
        self.statement = statement
        self.status_message = status_message


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class InvalidSpecError(ProvisionerError):
    """A provisioning spec document is malformed."""

    default_category = ErrorCategory.CONFIG

    def __init__(self, key: str, message: str | None = None):
        super().__init__(
            message or f"Invalid provisioning spec field: {key}",
            context=ErrorContext(metadata={"key": key}),
        )
        self.key = key


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable.

    Non-provisioner exceptions are treated as not retryable; retrying
    transport failures is the client's business.
    """
    if isinstance(error, ProvisionerError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Return the category of an error, ``UNKNOWN`` for foreign exceptions."""
    if isinstance(error, ProvisionerError):
        return error.category
    if isinstance(error, OSError):
        return ErrorCategory.PACKAGING
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ProvisionerError",
    "MissingResourceError",
    "BundleTooLargeError",
    "ProcedureCallError",
    "UploadFailedError",
    "DDLFailedError",
    "ProcedureDefinitionFailedError",
    "InvalidSpecError",
    "is_retryable",
    "categorize_error",
]
