"""
Tests for CANS.md activation: frontmatter parsing, schema validation,
TOFU integrity and the activation gate.
"""

import json
from pathlib import Path

import pytest

from careagent.activation.gate import ActivationGate
from careagent.activation.integrity import (
    compute_hash,
    get_integrity_store_path,
    update_known_good_hash,
    verify_integrity,
)
from careagent.activation.parser import parse_frontmatter
from careagent.activation.schema import AutonomyTier, CANSDocument, validate_document
from careagent.exceptions import CansParseError

from conftest import VALID_CANS_DATA, merge, render_cans


class TestParseFrontmatter:
    """Tests for YAML frontmatter extraction."""

    def test_parses_mapping_and_body(self):
        parsed = parse_frontmatter("---\nversion: '2.0'\nname: test\n---\n\n# Body\n\nText.\n")

        assert parsed.frontmatter == {"version": "2.0", "name": "test"}
        assert parsed.body == "# Body\n\nText."

    def test_leading_whitespace_is_ignored(self):
        parsed = parse_frontmatter("\n\n---\nkey: value\n---\nbody")
        assert parsed.frontmatter == {"key": "value"}

    def test_missing_opening_delimiter(self):
        with pytest.raises(CansParseError, match="missing opening ---"):
            parse_frontmatter("# Just markdown\n")

    def test_missing_closing_delimiter(self):
        with pytest.raises(CansParseError, match="No closing --- delimiter"):
            parse_frontmatter("---\nkey: value\nno end here\n")

    def test_empty_block(self):
        with pytest.raises(CansParseError, match="empty"):
            parse_frontmatter("---\n\n---\nbody")

    def test_malformed_yaml(self):
        with pytest.raises(CansParseError, match="YAML parse error") as exc_info:
            parse_frontmatter("---\nkey: [unclosed\n---\nbody")
        assert exc_info.value.original_error is not None

    def test_list_is_rejected(self):
        with pytest.raises(CansParseError, match="must be an object"):
            parse_frontmatter("---\n- a\n- b\n---\nbody")

    def test_scalar_is_rejected(self):
        with pytest.raises(CansParseError, match="must be an object"):
            parse_frontmatter("---\njust a string\n---\nbody")


class TestSchema:
    """Tests for CANS document validation."""

    def test_valid_document(self, cans_data):
        document, errors = validate_document(cans_data)

        assert errors == []
        assert isinstance(document, CANSDocument)
        assert document.provider.name == "Dr. Test Provider"
        assert document.autonomy.chart == AutonomyTier.AUTONOMOUS
        assert document.provider.primary_organization.name == "University Medical Center"

    def test_hardening_defaults_to_all_on(self, cans_data):
        del cans_data["hardening"]
        document, errors = validate_document(cans_data)

        assert errors == []
        assert document.hardening.tool_policy_lockdown is True
        assert document.hardening.exec_approval is True
        assert document.hardening.docker_sandbox is True

    def test_prohibited_actions_optional(self, cans_data):
        del cans_data["scope"]["prohibited_actions"]
        document, _ = validate_document(cans_data)
        assert document.scope.prohibited_actions == []

    def test_collects_every_violation(self, cans_data):
        cans_data["provider"]["name"] = ""
        cans_data["autonomy"]["chart"] = "yolo"
        cans_data["scope"]["permitted_actions"] = []

        document, errors = validate_document(cans_data)

        assert document is None
        paths = {e["path"] for e in errors}
        assert "/provider/name" in paths
        assert "/autonomy/chart" in paths
        assert "/scope/permitted_actions" in paths
        assert all(e["message"] for e in errors)

    def test_missing_section(self, cans_data):
        del cans_data["consent"]
        _, errors = validate_document(cans_data)
        assert errors == [{"path": "/consent", "message": "Field required"}]

    def test_invalid_npi(self, cans_data):
        cans_data["provider"]["npi"] = "12345"
        _, errors = validate_document(cans_data)
        assert [e["path"] for e in errors] == ["/provider/npi"]

    def test_document_is_immutable(self, document):
        with pytest.raises(Exception):
            document.version = "3.0"

    def test_unknown_keys_are_ignored(self, cans_data):
        cans_data["future_section"] = {"anything": True}
        document, errors = validate_document(cans_data)
        assert errors == []
        assert document is not None


class TestIntegrity:
    """Tests for trust-on-first-use hash checking."""

    def test_compute_hash_is_sha256_hex(self):
        digest = compute_hash("abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        assert compute_hash(b"abc") == digest

    def test_first_load_stores_hash(self, workspace):
        result = verify_integrity(workspace, "v1")

        assert result.valid is True
        assert result.is_first_load is True
        stored = json.loads(get_integrity_store_path(workspace).read_text())
        assert stored["hash"] == compute_hash("v1")
        assert "timestamp" in stored

    def test_matching_content_is_valid(self, workspace):
        verify_integrity(workspace, "v1")
        result = verify_integrity(workspace, "v1")

        assert result.valid is True
        assert result.is_first_load is False

    def test_changed_content_is_a_mismatch(self, workspace):
        verify_integrity(workspace, "v1")
        result = verify_integrity(workspace, "v2")

        assert result.valid is False
        assert "hash mismatch" in result.reason
        assert compute_hash("v1")[:12] in result.reason
        assert compute_hash("v2")[:12] in result.reason

    def test_mismatch_does_not_overwrite_store(self, workspace):
        verify_integrity(workspace, "v1")
        verify_integrity(workspace, "v2")
        assert verify_integrity(workspace, "v1").valid is True

    def test_corrupted_store(self, workspace):
        store = get_integrity_store_path(workspace)
        store.parent.mkdir(parents=True)
        store.write_text("{not json")

        result = verify_integrity(workspace, "v1")

        assert result.valid is False
        assert "Integrity store corrupted" in result.reason

    def test_store_without_hash_is_corrupted(self, workspace):
        store = get_integrity_store_path(workspace)
        store.parent.mkdir(parents=True)
        store.write_text(json.dumps({"timestamp": "x"}))

        assert "Integrity store corrupted" in verify_integrity(workspace, "v1").reason

    def test_unwritable_store_is_invalid(self, workspace):
        # A file where the state directory should be
        (workspace / ".careagent").write_text("")

        result = verify_integrity(workspace, "v1")

        assert result.valid is False
        assert "not writable" in result.reason

    def test_update_known_good_hash(self, workspace):
        verify_integrity(workspace, "v1")
        update_known_good_hash(workspace, "v2")

        assert verify_integrity(workspace, "v2").valid is True
        assert verify_integrity(workspace, "v1").valid is False


class TestActivationGate:
    """Tests for the four-step activation gate."""

    @pytest.fixture
    def records(self):
        return []

    @pytest.fixture
    def gate(self, workspace, records):
        return ActivationGate(workspace, records.append)

    def test_missing_cans_is_inactive_without_audit(self, gate, records):
        result = gate.check()

        assert result.active is False
        assert result.document is None
        assert "not found" in result.reason
        assert records == []

    def test_unwritable_state_dir_is_inactive(self, gate, workspace, write_cans, records):
        write_cans()
        (workspace / ".careagent").write_text("")

        result = gate.check()

        assert result.active is False
        assert "not writable" in result.reason
        assert [r["action"] for r in records] == ["cans_integrity_failure"]

    def test_valid_cans_activates(self, gate, write_cans, records):
        write_cans()
        result = gate.check()

        assert result.active is True
        assert result.document.provider.specialty == "Neurosurgery"
        assert result.is_first_load is True
        assert result.content_hash == compute_hash((gate.workspace_path / "CANS.md").read_bytes())
        assert records == []

    def test_second_check_is_not_first_load(self, gate, write_cans):
        write_cans()
        gate.check()
        result = gate.check()

        assert result.active is True
        assert result.is_first_load is False

    @pytest.mark.parametrize(
        "content, reason",
        [
            ("no frontmatter", "missing opening ---"),
            ("---\nkey: value\n", "No closing ---"),
            ("---\n   \n---\nbody", "empty"),
            ("---\nkey: [broken\n---\nbody", "YAML parse error"),
            ("---\n- item\n---\nbody", "must be an object"),
        ],
    )
    def test_parse_failures(self, gate, write_cans, records, content, reason):
        write_cans(content)
        result = gate.check()

        assert result.active is False
        assert reason in result.reason
        assert len(records) == 1
        assert records[0]["action"] == "cans_parse_error"
        assert records[0]["outcome"] == "error"

    def test_schema_failure(self, gate, write_cans, records):
        write_cans(merge(VALID_CANS_DATA, {"provider": {"name": ""}, "autonomy": {"order": "bad"}}))
        result = gate.check()

        assert result.active is False
        assert result.reason.startswith("CANS.md validation failed:\n")
        assert "  /provider/name: " in result.reason
        assert {e["path"] for e in result.errors} == {"/provider/name", "/autonomy/order"}
        assert records[0]["action"] == "cans_validation_error"
        assert records[0]["details"]["errors"] == result.errors

    def test_schema_failure_does_not_store_hash(self, gate, write_cans, workspace):
        write_cans(merge(VALID_CANS_DATA, {"version": None}))
        gate.check()
        assert not get_integrity_store_path(workspace).exists()

    def test_tampered_cans_is_inactive(self, gate, write_cans, records, cans_data):
        write_cans()
        assert gate.check().active is True

        cans_data["scope"]["permitted_actions"].append("order_medication")
        write_cans(cans_data)
        result = gate.check()

        assert result.active is False
        assert "hash mismatch" in result.reason
        assert records[-1]["action"] == "cans_integrity_failure"

    def test_body_edit_is_also_tampering(self, gate, write_cans):
        write_cans()
        gate.check()
        path = gate.workspace_path / "CANS.md"
        path.write_text(path.read_text() + "\nextra line\n")

        assert gate.check().active is False

    def test_corrupted_store_is_inactive(self, gate, write_cans, workspace, records):
        write_cans()
        store = get_integrity_store_path(workspace)
        store.parent.mkdir(parents=True, exist_ok=True)
        store.write_text("garbage")

        result = gate.check()

        assert result.active is False
        assert "Integrity store corrupted" in result.reason
        assert records[-1]["action"] == "cans_integrity_failure"

    def test_retrust_after_update(self, gate, write_cans, workspace, cans_data):
        write_cans()
        gate.check()
        cans_data["version"] = "2.1"
        path = write_cans(cans_data)
        assert gate.check().active is False

        update_known_good_hash(workspace, path.read_bytes())
        assert gate.check().active is True

    def test_accepts_string_workspace(self, workspace, write_cans):
        write_cans()
        gate = ActivationGate(str(workspace), lambda record: None)
        assert isinstance(gate.workspace_path, Path)
        assert gate.check().active is True

    def test_rendered_fixture_roundtrips(self, cans_data):
        parsed = parse_frontmatter(render_cans(cans_data))
        assert parsed.frontmatter == cans_data
