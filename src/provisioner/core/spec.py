"""Provisioning spec: the immutable description of one schema.

A spec lists what must exist in the database (DDL, procedure definitions)
and what code has to be shipped first (class files, auxiliary archives).
Statement order is significant: later DDL may reference objects created by
earlier DDL, and procedures may reference tables.

Specs are usually kept as YAML next to the application::

    bundle_file_name: procs.jar
    namespace: com.example.procs
    probe_procedure: GetVersion
    probe_params: ["schema"]
    ddl_statements:
      - CREATE TABLE accounts (id BIGINT NOT NULL, PRIMARY KEY (id));
      - CREATE INDEX accounts_ix ON accounts (id);
    procedure_statements:
      - CREATE PROCEDURE FROM CLASS com.example.procs.GetVersion;
    code_unit_names:
      - com.example.util.Codec
    archive_names:
      - lookup.zip
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from provisioner.core.errors import InvalidSpecError

_REQUIRED_STRINGS = ("bundle_file_name", "namespace", "probe_procedure")
_STRING_LISTS = ("ddl_statements", "procedure_statements", "archive_names", "code_unit_names")
_KNOWN_KEYS = frozenset((*_REQUIRED_STRINGS, *_STRING_LISTS, "probe_params", "retain_bundle", "metadata"))


@dataclass(frozen=True)
class ProvisioningSpec:
    """Everything needed to provision one schema.

    Attributes:
        ddl_statements: DDL applied in order via ``@AdHoc``
        procedure_statements: Procedure definitions applied in order after the DDL
        archive_names: Auxiliary archives shipped under the namespace directory
        bundle_file_name: File name of the bundle built in the temp directory
        namespace: Package of the stored procedures (``com.example.procs``)
        probe_procedure: Read-only procedure whose presence means "provisioned"
        probe_params: Positional parameters for the probe call
        code_unit_names: Extra classes to ship, as fully qualified names
        retain_bundle: Keep the bundle file after a successful upload
        metadata: Free-form data from the document's ``metadata:`` mapping;
            ignored by provisioning
    """

    bundle_file_name: str
    namespace: str
    probe_procedure: str
    ddl_statements: tuple[str, ...] = ()
    procedure_statements: tuple[str, ...] = ()
    archive_names: tuple[str, ...] = ()
    probe_params: tuple[Any, ...] = ()
    code_unit_names: tuple[str, ...] = ()
    retain_bundle: bool = False
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProvisioningSpec:
        """Build a spec from a plain mapping, validating keys and field types.

        Unknown top-level keys are rejected so a misspelled field cannot
        silently drop statements.
        """
        if not isinstance(data, Mapping):
            raise InvalidSpecError("<root>", "Provisioning spec must be a mapping")

        unknown = sorted(str(key) for key in data if key not in _KNOWN_KEYS)
        if unknown:
            raise InvalidSpecError(unknown[0], f"Unknown provisioning spec field(s): {', '.join(unknown)}")

        for key in _REQUIRED_STRINGS:
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise InvalidSpecError(key, f"'{key}' is required and must be a non-empty string")

        lists: dict[str, tuple[str, ...]] = {}
        for key in _STRING_LISTS:
            value = data.get(key) or []
            if isinstance(value, str) or not isinstance(value, list | tuple):
                raise InvalidSpecError(key, f"'{key}' must be a list of strings")
            if not all(isinstance(item, str) for item in value):
                raise InvalidSpecError(key, f"'{key}' must contain only strings")
            lists[key] = tuple(value)

        probe_params = data.get("probe_params") or []
        if isinstance(probe_params, str) or not isinstance(probe_params, list | tuple):
            raise InvalidSpecError("probe_params", "'probe_params' must be a list")

        retain_bundle = data.get("retain_bundle", False)
        if not isinstance(retain_bundle, bool):
            raise InvalidSpecError("retain_bundle", "'retain_bundle' must be true or false")

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, Mapping):
            raise InvalidSpecError("metadata", "'metadata' must be a mapping")

        return cls(
            bundle_file_name=data["bundle_file_name"],
            namespace=data["namespace"],
            probe_procedure=data["probe_procedure"],
            probe_params=tuple(probe_params),
            retain_bundle=retain_bundle,
            metadata=dict(metadata),
            **lists,
        )

    @classmethod
    def from_yaml(cls, text: str) -> ProvisioningSpec:
        """Parse a YAML document into a spec."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise InvalidSpecError("<yaml>", f"Provisioning spec is not valid YAML: {exc}") from exc
        return cls.from_dict(data)


def load_spec(path: str | Path) -> ProvisioningSpec:
    """Read a YAML provisioning spec from ``path``."""
    spec_path = Path(path)
    if not spec_path.exists():
        raise FileNotFoundError(f"Provisioning spec not found: {spec_path}")
    return ProvisioningSpec.from_yaml(spec_path.read_text(encoding="utf-8"))
