"""Find the classes that procedure-definition statements load.

``CREATE PROCEDURE ... FROM CLASS com.example.procs.GetVersion;`` needs
``GetVersion.class`` in the bundle before the statement can succeed. This
module scans the procedure statements once and returns those class names in
statement order. Inline SQL procedures (``CREATE PROCEDURE x AS SELECT ...``)
are ignored.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from provisioner.core.logging import get_logger
from provisioner.packaging.resolver import class_entry_path, namespace_path

logger = get_logger(__name__)

FROM_CLASS_MARKER = " FROM CLASS "
STATEMENT_TERMINATOR = ";"


@dataclass(frozen=True)
class ProcedureReference:
    """A class named by a ``FROM CLASS`` procedure statement."""

    class_name: str
    statement: str

    @property
    def is_qualified(self) -> bool:
        return "." in self.class_name

    def entry_path(self, namespace: str) -> str:
        """Path of the class file inside the bundle.

        Qualified names map straight to a path; bare names are placed in
        the procedure namespace.
        """
        if self.is_qualified:
            return class_entry_path(self.class_name)
        return f"{namespace_path(namespace)}/{self.class_name}.class"


def _normalize(statement: str) -> str:
    return statement.upper().replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def references_class(statement: str) -> bool:
    """Return ``True`` if ``statement`` defines a procedure from a class."""
    return FROM_CLASS_MARKER in _normalize(statement)


def extract_procedure_classes(statements: Iterable[str]) -> list[ProcedureReference]:
    """Return the classes referenced by ``statements``, in order.

    A ``FROM CLASS`` statement whose last token is not terminated by ``;``,
    or is a bare ``;``, cannot be parsed. It is logged and skipped, and the
    remaining statements are still scanned.
    """
    references: list[ProcedureReference] = []
    for statement in statements:
        if not references_class(statement):
            continue

        last_token = statement.split()[-1]
        if not last_token.endswith(STATEMENT_TERMINATOR):
            logger.error(
                "procedure.parse_failed",
                statement=statement,
                reason="can't find proc name",
            )
            continue

        class_name = last_token.rstrip(STATEMENT_TERMINATOR)
        if not class_name:
            logger.error(
                "procedure.parse_failed",
                statement=statement,
                reason="empty proc name",
            )
            continue

        references.append(ProcedureReference(class_name=class_name, statement=statement))
        logger.debug("procedure.class_found", class_name=class_name)

    return references
