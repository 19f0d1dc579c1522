"""Tests for provisioner.core.errors module."""

import pytest

from provisioner.core.errors import (
    BundleTooLargeError,
    DDLFailedError,
    ErrorCategory,
    ErrorContext,
    InvalidSpecError,
    MissingResourceError,
    ProcedureCallError,
    ProcedureDefinitionFailedError,
    ProvisionerError,
    UploadFailedError,
    categorize_error,
    is_retryable,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_empty_context(self):
        ctx = ErrorContext()
        assert ctx.statement is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_skips_unset_fields(self):
        ctx = ErrorContext(bundle="procs.jar", statement="CREATE TABLE t (a int);")
        assert ctx.to_dict() == {"bundle": "procs.jar", "statement": "CREATE TABLE t (a int);"}

    def test_metadata_is_flattened(self):
        ctx = ErrorContext(path="/a/B.class", metadata={"root": "/opt/app"})
        assert ctx.to_dict() == {"path": "/a/B.class", "root": "/opt/app"}


class TestProvisionerError:
    """Test the base exception."""

    def test_defaults(self):
        error = ProvisionerError("boom")
        assert str(error) == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_cause_is_chained(self):
        cause = ConnectionError("socket closed")
        error = ProvisionerError("boom", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "socket closed"

    def test_with_context_sets_known_fields_and_metadata(self):
        error = ProvisionerError("boom").with_context(bundle="procs.jar", attempt=2)
        assert error.context.bundle == "procs.jar"
        assert error.context.metadata == {"attempt": 2}

    def test_to_dict(self):
        error = ProvisionerError("boom", category=ErrorCategory.CONFIG)
        assert error.to_dict() == {
            "error_type": "ProvisionerError",
            "message": "boom",
            "category": "CONFIG",
            "retryable": False,
        }

    def test_repr(self):
        assert repr(ProvisionerError("boom")) == "ProvisionerError('boom', category=INTERNAL)"


class TestSubclasses:
    def test_missing_resource(self):
        error = MissingResourceError("/com/example/procs/GetVersion.class")
        assert error.path == "/com/example/procs/GetVersion.class"
        assert error.category == ErrorCategory.RESOURCE
        assert error.context.path == "/com/example/procs/GetVersion.class"
        assert "GetVersion.class" in str(error)

    def test_bundle_too_large_message(self):
        error = BundleTooLargeError(size=60_000_000, limit=47185920.0, name="procs.jar")
        assert str(error) == "Payload file procs.jar is too big at 60000000; max length is 47185920.0"
        assert error.size == 60_000_000
        assert error.limit == 47185920.0
        assert error.category == ErrorCategory.PACKAGING

    def test_procedure_call_error_keeps_status(self):
        error = ProcedureCallError("Procedure GetVersion was not found", status=-2, procedure="GetVersion")
        assert error.status_string == "Procedure GetVersion was not found"
        assert error.status == -2
        assert error.context.procedure == "GetVersion"

    def test_upload_failed_message(self):
        error = UploadFailedError("Catalog update rejected")
        assert str(error) == "Attempt to execute UpdateClasses failed:Catalog update rejected"
        assert error.status_message == "Catalog update rejected"
        assert error.category == ErrorCategory.DATABASE

    @pytest.mark.parametrize("cls", [DDLFailedError, ProcedureDefinitionFailedError])
    def test_statement_errors(self, cls):
        error = cls("CREATE TABLE t (a int);", "unexpected token")
        assert str(error) == "Attempt to execute 'CREATE TABLE t (a int);' failed:unexpected token"
        assert error.statement == "CREATE TABLE t (a int);"
        assert error.status_message == "unexpected token"
        assert error.category == ErrorCategory.SCHEMA
        assert error.to_dict()["context"]["statement"] == "CREATE TABLE t (a int);"

    def test_invalid_spec(self):
        error = InvalidSpecError("namespace")
        assert error.key == "namespace"
        assert error.category == ErrorCategory.CONFIG
        assert str(error) == "Invalid provisioning spec field: namespace"

    def test_all_are_provisioner_errors(self):
        for error in [
            MissingResourceError("x"),
            BundleTooLargeError(2, 1.0),
            ProcedureCallError("x"),
            UploadFailedError("x"),
            DDLFailedError("s", "x"),
            ProcedureDefinitionFailedError("s", "x"),
            InvalidSpecError("k"),
        ]:
            assert isinstance(error, ProvisionerError)
            assert error.retryable is False


class TestHelpers:
    def test_is_retryable(self):
        assert is_retryable(DDLFailedError("s", "x")) is False
        assert is_retryable(ProvisionerError("x", retryable=True)) is True
        assert is_retryable(TimeoutError("slow")) is False

    def test_categorize_error(self):
        assert categorize_error(UploadFailedError("x")) == ErrorCategory.DATABASE
        assert categorize_error(PermissionError("read-only")) == ErrorCategory.PACKAGING
        assert categorize_error(ValueError("x")) == ErrorCategory.UNKNOWN
