"""SchemaBuilder: create a schema and its procedures exactly once.

Many processes may start against the same fresh database and all try to
provision it. The builder makes that safe without any external lock:

::

    START
      │
      ▼
    CHECK_EXISTS ──(probe says present)──► ALREADY_PROVISIONED  → False
      │
      ▼
    PACKAGE ──► GUARD_SIZE ──► UPLOAD          (BundleTooLargeError,
      │                                          UploadFailedError)
      ▼
    APPLY_DDL ──("object name already exists")──► RACE_LOST     → False
      │          (any other failure → DDLFailedError)
      ▼
    APPLY_PROCEDURES   (any failure → ProcedureDefinitionFailedError)
      │
      ▼
    VERIFY ──► DONE                                            → probe result

A lost race shows up as the first DDL statement failing because its object
already exists; the builder then reports ``False`` instead of raising.
Within one process, an instance lock keeps two threads from packaging and
uploading at the same time. Across processes only the database's own
duplicate-object check and the race detection above apply.

The client is borrowed: the builder never opens or closes it.

Example::

    builder = SchemaBuilder(spec, client, ResourceResolver("myapp"))
    if builder.load_classes_and_ddl_if_needed():
        logger.info("schema.created")
"""

from __future__ import annotations

import os
import tempfile
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from provisioner.core.errors import (
    DDLFailedError,
    ProcedureCallError,
    ProcedureDefinitionFailedError,
    ProvisionerError,
    UploadFailedError,
)
from provisioner.core.logging import LogContext, get_logger
from provisioner.core.protocols import (
    ADHOC_PROCEDURE,
    UPDATE_CLASSES_PROCEDURE,
    ProcedureClient,
)
from provisioner.core.settings import ProvisionerSettings
from provisioner.core.spec import ProvisioningSpec
from provisioner.packaging.bundle import Bundle, BundlePackager
from provisioner.packaging.resolver import ResourceResolver
from provisioner.schema.assembler import BundleAssembler
from provisioner.schema.extractor import ProcedureReference, extract_procedure_classes
from provisioner.schema.prober import ExistenceProber
from provisioner.schema.races import is_already_exists_race

logger = get_logger(__name__)


class ProvisioningState(str, Enum):
    START = "start"
    CHECK_EXISTS = "check_exists"
    PACKAGE = "package"
    GUARD_SIZE = "guard_size"
    UPLOAD = "upload"
    APPLY_DDL = "apply_ddl"
    APPLY_PROCEDURES = "apply_procedures"
    VERIFY = "verify"
    # terminal
    ALREADY_PROVISIONED = "already_provisioned"
    RACE_LOST = "race_lost"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ProvisioningResult:
    """Outcome of one :meth:`SchemaBuilder.provision` call."""

    created: bool = False
    state: ProvisioningState = ProvisioningState.START
    transitions: list[ProvisioningState] = field(default_factory=list)
    ddl_applied: int = 0
    procedures_applied: int = 0
    bundle_path: Path | None = None
    bundle_size: int | None = None
    race_detected: bool = False
    error: str | None = None

    def advance(self, state: ProvisioningState) -> None:
        self.transitions.append(state)
        self.state = state
        logger.debug("provisioning.state", state=state.value)


@dataclass(frozen=True)
class _StatementOutcome:
    success: bool
    message: str = ""
    cause: ProcedureCallError | None = None


class SchemaBuilder:
    """Provision a schema described by a :class:`ProvisioningSpec`.

    Parameters
    ----------
    spec
        What to create and which code to ship.
    client
        Borrowed database client; its lifecycle belongs to the caller.
    resolver
        Where class files and archives are looked up.
    settings
        Size budget, temp dir prefix and bundle retention. Defaults to
        :class:`ProvisionerSettings` read from the environment.
    packager
        Bundle writer. Defaults to :class:`BundlePackager`.
    """

    def __init__(
        self,
        spec: ProvisioningSpec,
        client: ProcedureClient,
        resolver: ResourceResolver,
        *,
        settings: ProvisionerSettings | None = None,
        packager: BundlePackager | None = None,
    ) -> None:
        self._spec = spec
        self._client = client
        self._settings = settings or ProvisionerSettings()
        self._prober = ExistenceProber(client, spec.probe_procedure, spec.probe_params)
        self._retain_bundle = spec.retain_bundle or self._settings.retain_bundle
        self._lock = threading.Lock()
        self.last_result: ProvisioningResult | None = None

        self._procedure_refs = extract_procedure_classes(spec.procedure_statements)
        self._assembler = BundleAssembler(
            spec,
            resolver,
            settings=self._settings,
            packager=packager,
            references=self._procedure_refs,
        )

    # -- properties ----------------------------------------------------------

    @property
    def spec(self) -> ProvisioningSpec:
        return self._spec

    @property
    def procedure_references(self) -> list[ProcedureReference]:
        return list(self._procedure_refs)

    @property
    def retain_bundle(self) -> bool:
        """Keep the bundle file after a successful upload (default: delete)."""
        return self._retain_bundle

    @retain_bundle.setter
    def retain_bundle(self, value: bool) -> None:
        self._retain_bundle = value

    # -- public API ----------------------------------------------------------

    def schema_exists(self) -> bool:
        """Run the existence probe once."""
        return self._prober.exists()

    def load_classes_and_ddl_if_needed(self) -> bool:
        """Provision the schema if missing.

        Returns
        -------
        bool
            ``True`` if this call created the schema, ``False`` if it already
            existed or a concurrent process created it first.
        """
        return self.provision().created

    def provision(self) -> ProvisioningResult:
        """Run the full state machine and return its detailed outcome.

        Raises
        ------
        MissingResourceError, BundleTooLargeError, UploadFailedError,
        DDLFailedError, ProcedureDefinitionFailedError
            On the corresponding fatal failure.
        OSError
            If the bundle cannot be written.
        """
        with self._lock:
            result = ProvisioningResult()
            self.last_result = result
            with LogContext(bundle=self._spec.bundle_file_name, namespace=self._spec.namespace):
                try:
                    self._run(result)
                except Exception as exc:
                    result.error = str(exc)
                    result.advance(ProvisioningState.FAILED)
                    details = exc.to_dict() if isinstance(exc, ProvisionerError) else {"error": str(exc)}
                    logger.error("provisioning.failed", **details)
                    raise
            return result

    def bundle_entry_paths(self) -> list[str]:
        """Bundle entry paths in write order."""
        return self._assembler.entry_paths()

    # -- state machine -------------------------------------------------------

    def _run(self, result: ProvisioningResult) -> None:
        result.advance(ProvisioningState.CHECK_EXISTS)
        if self._prober.exists():
            logger.info("provisioning.skipped", reason="schema already exists")
            result.advance(ProvisioningState.ALREADY_PROVISIONED)
            return

        result.advance(ProvisioningState.PACKAGE)
        temp_dir = Path(tempfile.mkdtemp(prefix=self._settings.temp_dir_prefix))
        if not os.access(temp_dir, os.W_OK):
            raise PermissionError(f"Temp directory '{temp_dir}' is not writable")
        bundle = self._assembler.package(temp_dir, keep_on_failure=self._retain_bundle)
        result.bundle_path = bundle.path
        result.bundle_size = bundle.size

        result.advance(ProvisioningState.GUARD_SIZE)
        self._assembler.check_size(bundle, keep_on_failure=self._retain_bundle)

        result.advance(ProvisioningState.UPLOAD)
        self._upload(bundle)

        result.advance(ProvisioningState.APPLY_DDL)
        for statement in self._spec.ddl_statements:
            outcome = self._execute(statement)
            if outcome.success:
                result.ddl_applied += 1
                continue
            if is_already_exists_race(outcome.message):
                # Someone else has done this...
                logger.warning("provisioning.race_lost", statement=statement, error=outcome.message)
                result.race_detected = True
                result.advance(ProvisioningState.RACE_LOST)
                return
            raise DDLFailedError(statement, outcome.message, cause=outcome.cause)

        result.advance(ProvisioningState.APPLY_PROCEDURES)
        for statement in self._spec.procedure_statements:
            outcome = self._execute(statement)
            if not outcome.success:
                raise ProcedureDefinitionFailedError(statement, outcome.message, cause=outcome.cause)
            result.procedures_applied += 1

        result.advance(ProvisioningState.VERIFY)
        result.created = self._prober.exists()
        result.advance(ProvisioningState.DONE)
        logger.info(
            "provisioning.completed",
            created=result.created,
            ddl_applied=result.ddl_applied,
            procedures_applied=result.procedures_applied,
        )

    def _upload(self, bundle: Bundle) -> None:
        payload = bundle.read_bytes()
        logger.info("bundle.uploading", procedure=UPDATE_CLASSES_PROCEDURE, size_bytes=len(payload))
        try:
            response = self._client.call_procedure(UPDATE_CLASSES_PROCEDURE, payload, None)
        except ProcedureCallError as exc:
            raise UploadFailedError(exc.status_string, cause=exc) from exc
        if not response.success:
            raise UploadFailedError(response.status_string)

        bundle.mark_uploaded()
        bundle.release(retain=self._retain_bundle)

    def _execute(self, statement: str) -> _StatementOutcome:
        logger.info("schema.executing", statement=statement)
        try:
            response = self._client.call_procedure(ADHOC_PROCEDURE, statement)
        except ProcedureCallError as exc:
            return _StatementOutcome(success=False, message=exc.status_string, cause=exc)
        if not response.success:
            return _StatementOutcome(success=False, message=response.status_string)
        return _StatementOutcome(success=True)
