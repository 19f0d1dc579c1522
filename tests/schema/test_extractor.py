"""Tests for FROM CLASS procedure reference extraction."""

from __future__ import annotations

from structlog.testing import capture_logs

from provisioner.schema.extractor import (
    ProcedureReference,
    extract_procedure_classes,
    references_class,
)


class TestReferencesClass:
    def test_from_class(self):
        assert references_class("CREATE PROCEDURE FROM CLASS com.example.MyProc;")

    def test_case_insensitive(self):
        assert references_class("create procedure from class com.example.MyProc;")

    def test_line_breaks_count_as_spaces(self):
        assert references_class("CREATE PROCEDURE\nPARTITION ON TABLE t COLUMN id\nFROM\nCLASS com.x.P;")
        assert references_class("CREATE PROCEDURE\nFROM CLASS\ncom.x.P;")

    def test_inline_sql_procedure(self):
        assert not references_class("CREATE PROCEDURE Count AS SELECT COUNT(*) FROM accounts;")


class TestExtract:
    def test_qualified_name(self):
        refs = extract_procedure_classes(["CREATE PROCEDURE FROM CLASS com.example.MyProc;"])
        assert [r.class_name for r in refs] == ["com.example.MyProc"]

    def test_order_preserved_and_inline_skipped(self):
        refs = extract_procedure_classes(
            [
                "CREATE PROCEDURE FROM CLASS com.example.B;",
                "CREATE PROCEDURE Count AS SELECT COUNT(*) FROM accounts;",
                "CREATE PROCEDURE PARTITION ON TABLE t COLUMN id\n  FROM CLASS com.example.A;\n",
            ]
        )
        assert [r.class_name for r in refs] == ["com.example.B", "com.example.A"]
        assert refs[1].statement.endswith("com.example.A;\n")

    def test_lowercase_keywords_keep_class_case(self):
        refs = extract_procedure_classes(["create procedure from class com.example.camelCase;"])
        assert refs[0].class_name == "com.example.camelCase"

    def test_unterminated_statement_is_skipped(self):
        with capture_logs() as logs:
            refs = extract_procedure_classes(
                [
                    "CREATE PROCEDURE FROM CLASS com.example.Broken",
                    "CREATE PROCEDURE FROM CLASS com.example.Fine;",
                ]
            )

        assert [r.class_name for r in refs] == ["com.example.Fine"]
        errors = [e for e in logs if e["log_level"] == "error"]
        assert len(errors) == 1
        assert errors[0]["event"] == "procedure.parse_failed"
        assert errors[0]["statement"] == "CREATE PROCEDURE FROM CLASS com.example.Broken"

    def test_detached_terminator_is_skipped(self):
        with capture_logs() as logs:
            refs = extract_procedure_classes(
                [
                    "CREATE PROCEDURE FROM CLASS com.example.Spaced ;",
                    "CREATE PROCEDURE FROM CLASS com.example.Fine;",
                ]
            )

        assert [r.class_name for r in refs] == ["com.example.Fine"]
        errors = [e for e in logs if e["log_level"] == "error"]
        assert [e["event"] for e in errors] == ["procedure.parse_failed"]
        assert errors[0]["reason"] == "empty proc name"

    def test_empty(self):
        assert extract_procedure_classes([]) == []


class TestProcedureReference:
    def test_qualified_entry_path(self):
        ref = ProcedureReference("com.example.procs.GetVersion", "...")
        assert ref.is_qualified
        assert ref.entry_path("ignored.namespace") == "com/example/procs/GetVersion.class"

    def test_bare_name_goes_to_namespace(self):
        ref = ProcedureReference("GetVersion", "CREATE PROCEDURE FROM CLASS GetVersion;")
        assert not ref.is_qualified
        assert ref.entry_path("com.example.procs") == "com/example/procs/GetVersion.class"
