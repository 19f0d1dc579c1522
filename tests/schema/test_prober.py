"""Tests for ExistenceProber."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from provisioner.core.errors import ProcedureCallError
from provisioner.core.protocols import ClientResponse, ProcedureClient, ResponseStatus
from provisioner.schema.prober import ExistenceProber, ExistenceVerdict
from tests._support.fake_database import FakeClient, failure


@pytest.fixture()
def prober(client: FakeClient) -> ExistenceProber:
    return ExistenceProber(client, "GetVersion", ("schema",))


class TestProbe:
    def test_fake_client_satisfies_protocol(self, client: FakeClient):
        assert isinstance(client, ProcedureClient)

    def test_exists(self, prober: ExistenceProber, client: FakeClient):
        client.queue("GetVersion", ClientResponse.ok("v1"))
        assert prober.probe() == ExistenceVerdict.EXISTS
        assert client.calls_to("GetVersion")[0] == ("schema",)

    def test_absent_on_not_found(self, prober: ExistenceProber):
        with capture_logs() as logs:
            assert prober.probe() == ExistenceVerdict.ABSENT
        assert not [e for e in logs if e["log_level"] == "error"]

    def test_other_call_error_is_indeterminate(self, prober: ExistenceProber, client: FakeClient):
        client.queue("GetVersion", ProcedureCallError("Procedure GetVersion is disabled"))
        with capture_logs() as logs:
            verdict = prober.probe()

        assert verdict == ExistenceVerdict.INDETERMINATE
        assert verdict.exists is False
        assert logs[-1]["event"] == "probe.unexpected_error"
        assert logs[-1]["log_level"] == "error"
        assert logs[-1]["error"] == "Procedure GetVersion is disabled"

    def test_not_found_for_other_procedure(self, prober: ExistenceProber, client: FakeClient):
        client.queue("GetVersion", ProcedureCallError("Procedure Other was not found"))
        assert prober.probe() == ExistenceVerdict.INDETERMINATE

    def test_failed_response_is_indeterminate(self, prober: ExistenceProber, client: FakeClient):
        client.queue("GetVersion", failure("Connection lost", ResponseStatus.CONNECTION_LOST))
        with capture_logs() as logs:
            assert prober.probe() == ExistenceVerdict.INDETERMINATE
        assert logs[-1]["event"] == "probe.unsuccessful"

    def test_transport_error_is_indeterminate(self, prober: ExistenceProber, client: FakeClient):
        client.queue("GetVersion", TimeoutError("no response in 30s"))
        with capture_logs() as logs:
            assert prober.probe() == ExistenceVerdict.INDETERMINATE
        assert logs[-1]["event"] == "probe.failed"
        assert logs[-1]["error_type"] == "TimeoutError"

    def test_exists_reflects_database(self, prober: ExistenceProber, client: FakeClient):
        assert prober.exists() is False
        client.database.procedures["GETVERSION"] = "CREATE PROCEDURE ..."
        assert prober.exists() is True

    def test_no_params(self, client: FakeClient):
        ExistenceProber(client, "GetVersion").probe()
        assert client.calls == [("GetVersion", ())]
