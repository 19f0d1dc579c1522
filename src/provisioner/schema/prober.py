"""Decide whether the schema is already provisioned.

The probe calls a read-only procedure that only exists once provisioning has
finished. There are three outcomes:

- the call succeeds → ``EXISTS``
- the database says the procedure was not found → ``ABSENT``
- anything else → ``INDETERMINATE``, logged as an error

Only ``EXISTS`` counts as present. An indeterminate probe makes the builder
attempt provisioning rather than silently skipping it.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from provisioner.core.errors import ProcedureCallError
from provisioner.core.logging import get_logger
from provisioner.core.protocols import ProcedureClient
from provisioner.schema.races import is_procedure_not_found

logger = get_logger(__name__)


class ExistenceVerdict(str, Enum):
    EXISTS = "exists"
    ABSENT = "absent"
    INDETERMINATE = "indeterminate"

    @property
    def exists(self) -> bool:
        return self is ExistenceVerdict.EXISTS


class ExistenceProber:
    """Run the configured existence probe against a borrowed client."""

    def __init__(
        self,
        client: ProcedureClient,
        procedure: str,
        params: Sequence[Any] = (),
    ) -> None:
        self._client = client
        self._procedure = procedure
        self._params = tuple(params)

    @property
    def procedure(self) -> str:
        return self._procedure

    def probe(self) -> ExistenceVerdict:
        try:
            response = self._client.call_procedure(self._procedure, *self._params)
        except ProcedureCallError as exc:
            if is_procedure_not_found(exc.status_string, self._procedure):
                logger.debug("probe.absent", procedure=self._procedure)
                return ExistenceVerdict.ABSENT
            logger.error(
                "probe.unexpected_error",
                procedure=self._procedure,
                error=exc.status_string,
            )
            return ExistenceVerdict.INDETERMINATE
        except Exception as exc:
            logger.error(
                "probe.failed",
                procedure=self._procedure,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ExistenceVerdict.INDETERMINATE

        if response.success:
            logger.debug("probe.exists", procedure=self._procedure)
            return ExistenceVerdict.EXISTS

        logger.error(
            "probe.unsuccessful",
            procedure=self._procedure,
            status=str(response.status),
            error=response.status_string,
        )
        return ExistenceVerdict.INDETERMINATE

    def exists(self) -> bool:
        return self.probe().exists
