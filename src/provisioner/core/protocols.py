"""
Database call contract used by the provisioner.

The provisioner never opens, pools or closes connections. It is handed a
long-lived client that matches :class:`ProcedureClient` and only issues
procedure calls through it:

- the existence probe (any read-only procedure),
- ``@AdHoc`` for each DDL and procedure-definition statement,
- ``@UpdateClasses`` with the raw bundle bytes.

A client reports a database-side failure either by returning a
:class:`ClientResponse` whose status is not ``SUCCESS`` or by raising
:class:`~provisioner.core.errors.ProcedureCallError`. Anything else it raises
(socket errors, timeouts) is a transport error and is propagated untouched.

Tags:
    protocols, database-client, provisioning

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Protocol, runtime_checkable

ADHOC_PROCEDURE = "@AdHoc"
UPDATE_CLASSES_PROCEDURE = "@UpdateClasses"


class ResponseStatus(IntEnum):
    """Status codes of a procedure call response."""

    SUCCESS = 1
    USER_ABORT = -1
    GRACEFUL_FAILURE = -2
    UNEXPECTED_FAILURE = -3
    CONNECTION_LOST = -4


@dataclass(frozen=True)
class ClientResponse:
    """Result of one procedure call."""

    status: ResponseStatus
    status_string: str = ""
    results: tuple[Any, ...] = ()

    @property
    def success(self) -> bool:
        return self.status == ResponseStatus.SUCCESS

    @classmethod
    def ok(cls, *results: Any) -> ClientResponse:
        return cls(status=ResponseStatus.SUCCESS, results=results)

    @classmethod
    def failure(
        cls,
        status_string: str,
        status: ResponseStatus = ResponseStatus.GRACEFUL_FAILURE,
    ) -> ClientResponse:
        return cls(status=status, status_string=status_string)


@runtime_checkable
class ProcedureClient(Protocol):
    """
    Synchronous procedure-call client (borrowed, never closed by us).

    Example:
        >>> def probe(client: ProcedureClient) -> bool:
        ...     return client.call_procedure("GetVersion", "schema").success
    """

    def call_procedure(self, name: str, *params: Any) -> ClientResponse:
        """Invoke ``name`` with positional ``params`` and block for the response."""
        ...


__all__ = [
    "ADHOC_PROCEDURE",
    "UPDATE_CLASSES_PROCEDURE",
    "ResponseStatus",
    "ClientResponse",
    "ProcedureClient",
]
