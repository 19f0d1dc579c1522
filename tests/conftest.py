"""
Shared pytest fixtures for schema-provisioner tests.

This module provides:
- A resource root on disk holding fake compiled classes and an archive
- A ready-made ``ProvisioningSpec`` that references them
- A ``FakeDatabase`` / ``FakeClient`` pair standing in for the cluster
- Settings that keep bundles inside the test's temp directory
"""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest
import structlog

from provisioner.core.settings import ProvisionerSettings
from provisioner.core.spec import ProvisioningSpec
from provisioner.packaging.resolver import ResourceResolver
from provisioner.schema.builder import SchemaBuilder
from tests._support.fake_database import FakeClient, FakeDatabase

NAMESPACE = "com.example.procs"

DDL = (
    "CREATE TABLE accounts (id BIGINT NOT NULL, name VARCHAR(64), PRIMARY KEY (id));",
    "CREATE INDEX accounts_name_ix ON accounts (name);",
)

PROCEDURES = (
    "CREATE PROCEDURE FROM CLASS com.example.procs.GetVersion;",
    "CREATE PROCEDURE \n   PARTITION ON TABLE accounts COLUMN id\n   FROM CLASS com.example.procs.UpsertAccount;",
    "CREATE PROCEDURE CountAccounts AS SELECT COUNT(*) FROM accounts;",
)


def write_resource(root: Path, relative: str, content: bytes) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Keep logging configuration changes from leaking between tests."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture()
def bundle_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Make ``tempfile.mkdtemp`` create directories under the test's tmp_path."""
    base = tmp_path / "tmp"
    base.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(base))
    return base


@pytest.fixture()
def class_root(tmp_path: Path) -> Path:
    """Directory laid out like the application's embedded resources."""
    root = tmp_path / "resources"
    write_resource(root, "com/example/util/Codec.class", b"\xca\xfe\xba\xbe codec")
    write_resource(root, "com/example/procs/GetVersion.class", b"\xca\xfe\xba\xbe get-version")
    write_resource(root, "com/example/procs/UpsertAccount.class", b"\xca\xfe\xba\xbe upsert")
    write_resource(root, "com/example/procs/lookup.zip", b"PK\x05\x06" + b"\x00" * 18)
    return root


@pytest.fixture()
def resolver(class_root: Path) -> ResourceResolver:
    return ResourceResolver(class_root)


@pytest.fixture()
def spec() -> ProvisioningSpec:
    return ProvisioningSpec(
        bundle_file_name="procs.jar",
        namespace=NAMESPACE,
        probe_procedure="GetVersion",
        probe_params=("schema",),
        ddl_statements=DDL,
        procedure_statements=PROCEDURES,
        archive_names=("lookup.zip",),
        code_unit_names=("com.example.util.Codec",),
    )


@pytest.fixture()
def settings() -> ProvisionerSettings:
    return ProvisionerSettings(_env_file=None, temp_dir_prefix="test_bundle_")


@pytest.fixture()
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture()
def client(database: FakeDatabase) -> FakeClient:
    return FakeClient(database)


@pytest.fixture()
def builder(
    spec: ProvisioningSpec,
    client: FakeClient,
    resolver: ResourceResolver,
    settings: ProvisionerSettings,
    bundle_tmp: Path,
) -> SchemaBuilder:
    return SchemaBuilder(spec, client, resolver, settings=settings)
