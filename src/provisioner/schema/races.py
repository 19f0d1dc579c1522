"""Recognise the database's error texts the provisioner depends on.

Both checks match on message text produced by the database. They live here
so a change in that wording is fixed in one place.
"""

from __future__ import annotations

# Substring of the DDL error raised when the object was already created,
# which during provisioning means another process got there first.
ALREADY_EXISTS_MARKER = "object name already exists"

_PROCEDURE_NOT_FOUND = "Procedure {name} was not found"


def is_already_exists_race(message: str | None) -> bool:
    """Return ``True`` if a DDL failure means a concurrent run won the race."""
    if not message:
        return False
    return ALREADY_EXISTS_MARKER in message


def procedure_not_found_message(procedure: str) -> str:
    """Exact message the database uses for a call to an unknown procedure."""
    return _PROCEDURE_NOT_FOUND.format(name=procedure)


def is_procedure_not_found(message: str | None, procedure: str) -> bool:
    """Return ``True`` if ``message`` says exactly that ``procedure`` is unknown."""
    return message == procedure_not_found_message(procedure)
