# tests/unit/core/artifact/test_validator.py
"""Tests for fail-fast document validation."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from keepsake.contracts import ValidationCode, ValidationError, ValidationReport
from keepsake.core.artifact.encoder import serialize
from keepsake.core.artifact.validator import ArtifactValidator, validate
from keepsake.core.constants import CURRENT_SCHEMA_VERSION
from keepsake.world import TypeRegistry, World
from tests.fixtures.groups import Container, Health


def _document(*entities: dict[str, Any], schema_version: int | None = CURRENT_SCHEMA_VERSION) -> dict[str, Any]:
    meta: dict[str, Any] = {"formatVersion": "1.0.0", "timestamp": 0, "externalVersion": None}
    if schema_version is not None:
        meta["schemaVersion"] = schema_version
    return {"entityRecords": list(entities), "meta": meta}


def _code(document: Any, **options: Any) -> ValidationCode:
    with pytest.raises(ValidationError) as exc_info:
        ArtifactValidator(options=options).validate(document)
    return exc_info.value.code


class TestStructure:
    @pytest.mark.parametrize("document", [None, [], "doc", 3])
    def test_document_must_be_object(self, document: Any) -> None:
        assert _code(document) is ValidationCode.INVALID_STRUCTURE

    @pytest.mark.parametrize("entities", [None, {}, "a"])
    def test_entity_records_must_be_list(self, entities: Any) -> None:
        assert _code({"entityRecords": entities}) is ValidationCode.INVALID_STRUCTURE

    def test_entity_records_required(self) -> None:
        assert _code({"meta": {}}) is ValidationCode.INVALID_STRUCTURE

    def test_meta_must_be_object(self) -> None:
        assert _code({"entityRecords": [], "meta": "v1"}) is ValidationCode.INVALID_STRUCTURE

    def test_minimal_document_valid(self) -> None:
        validate({"entityRecords": []})


class TestChecksum:
    @pytest.fixture
    def signed(self, world: World) -> dict[str, Any]:
        hero = world.create_record("hero")
        hero.add(Health(current=5))
        return copy.deepcopy(serialize(world, {"checksum": True}))  # type: ignore[arg-type]

    def test_unmodified_document_passes(self, signed: dict[str, Any]) -> None:
        validate(signed)

    def test_mutated_records_fail(self, signed: dict[str, Any]) -> None:
        signed["entityRecords"][0]["health"]["current"] = 6
        assert _code(signed) is ValidationCode.CHECKSUM_MISMATCH

    def test_reordered_keys_fail(self, signed: dict[str, Any]) -> None:
        health = signed["entityRecords"][0]["health"]
        signed["entityRecords"][0]["health"] = dict(reversed(list(health.items())))
        assert _code(signed) is ValidationCode.CHECKSUM_MISMATCH

    def test_tampered_checksum_fails(self, signed: dict[str, Any]) -> None:
        signed["meta"]["checksum"] = "simple:0"
        assert _code(signed) is ValidationCode.CHECKSUM_MISMATCH

    def test_non_string_checksum_fails(self, signed: dict[str, Any]) -> None:
        signed["meta"]["checksum"] = 12
        assert _code(signed) is ValidationCode.CHECKSUM_MISMATCH

    def test_check_can_be_disabled(self, signed: dict[str, Any]) -> None:
        signed["entityRecords"][0]["health"]["current"] = 6
        ArtifactValidator(options={"validateChecksum": False}).validate(signed)

    def test_meta_fields_not_covered(self, signed: dict[str, Any]) -> None:
        signed["meta"]["externalVersion"] = "changed"
        validate(signed)

    def test_checksum_checked_before_version(self, signed: dict[str, Any]) -> None:
        signed["entityRecords"].append({"id": "extra"})
        signed["meta"]["schemaVersion"] = CURRENT_SCHEMA_VERSION + 1
        assert _code(signed) is ValidationCode.CHECKSUM_MISMATCH


class TestSchemaVersion:
    def test_newer_version_rejected(self) -> None:
        assert _code(_document(schema_version=CURRENT_SCHEMA_VERSION + 1)) is ValidationCode.VERSION_TOO_NEW

    def test_older_version_accepted(self) -> None:
        validate(_document(schema_version=CURRENT_SCHEMA_VERSION - 1))

    def test_missing_version_is_legacy_zero(self) -> None:
        validate(_document(schema_version=None))
        assert _code(_document(schema_version=None), strict_version=True) is ValidationCode.VERSION_MISMATCH

    def test_null_version_is_legacy_zero(self) -> None:
        document = _document()
        document["meta"]["schemaVersion"] = None

        validate(document)
        assert _code(document, strict_version=True) is ValidationCode.VERSION_MISMATCH

    @pytest.mark.parametrize("version", [CURRENT_SCHEMA_VERSION - 1, CURRENT_SCHEMA_VERSION + 1])
    def test_strict_version_rejects_any_other(self, version: int) -> None:
        assert _code(_document(schema_version=version), strict_version=True) is ValidationCode.VERSION_MISMATCH

    def test_strict_version_accepts_current(self) -> None:
        ArtifactValidator(options={"strictVersion": True}).validate(_document())

    @pytest.mark.parametrize("version", ["1", 1.5, -1, True])
    def test_malformed_version_rejected(self, version: Any) -> None:
        document = _document()
        document["meta"]["schemaVersion"] = version
        assert _code(document) is ValidationCode.INVALID_STRUCTURE

    def test_custom_current_version(self) -> None:
        ArtifactValidator(current_version=5).validate(_document(schema_version=5))


class TestEntities:
    def test_entity_must_be_object(self) -> None:
        assert _code(_document({"id": "a"}, "b")) is ValidationCode.INVALID_ENTITY

    @pytest.mark.parametrize("entity", [{}, {"id": ""}, {"id": None}, {"id": 4}])
    def test_missing_id(self, entity: dict[str, Any]) -> None:
        assert _code(_document(entity)) is ValidationCode.MISSING_ENTITY_ID

    def test_duplicate_id(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate entity id: a") as exc_info:
            validate(_document({"id": "a"}, {"id": "b"}, {"id": "a"}))
        assert exc_info.value.code is ValidationCode.DUPLICATE_ENTITY_ID


class TestFieldGroups:
    def test_unknown_field_group(self, registry: TypeRegistry) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate(_document({"id": "a", "mana": {}}), registry)
        assert exc_info.value.code is ValidationCode.UNKNOWN_FIELD_GROUP
        assert "mana" in exc_info.value.message

    def test_known_field_groups_pass(self, registry: TypeRegistry) -> None:
        validate(_document({"id": "a", "health": {}, "item": [], "stat": {}}), registry)

    def test_check_can_be_disabled(self, registry: TypeRegistry) -> None:
        validate(_document({"id": "a", "mana": {}}), registry, {"validateFieldGroups": False})

    def test_skipped_without_registry(self) -> None:
        validate(_document({"id": "a", "mana": {}}))


class TestReferences:
    def test_reference_to_present_entity(self) -> None:
        validate(_document({"id": "a", "container": {"owner": {"$ref": "b"}}}, {"id": "b"}))

    def test_dangling_reference(self) -> None:
        with pytest.raises(ValidationError, match="Invalid entity reference: ghost") as exc_info:
            validate(_document({"id": "a", "container": {"contents": [{"deep": {"$ref": "ghost"}}]}}))
        assert exc_info.value.code is ValidationCode.INVALID_REFERENCE

    def test_check_can_be_disabled(self) -> None:
        ArtifactValidator(options={"validateReferences": False}).validate(_document({"id": "a", "container": {"owner": {"$ref": "ghost"}}}))

    def test_partial_closure_fails_reference_check(self, world: World) -> None:
        player = world.create_record("player")
        chest = world.create_record("chest")
        item = world.create_record("item")
        player.add(Container(owner=chest))
        chest.add(Container(owner=item))

        document = serialize(world, {"entities": [player], "resolveReferences": True, "maxDepth": 1})

        assert _code(document) is ValidationCode.INVALID_REFERENCE
        ArtifactValidator(options={"validateReferences": False}).validate(document)


class TestCheck:
    def test_valid_report(self) -> None:
        assert ArtifactValidator().check(_document()) == ValidationReport(valid=True)

    def test_invalid_report_carries_first_failure(self) -> None:
        report = ArtifactValidator().check(_document({"id": "a"}, {"id": "a"}, {"id": "b", "x": {"$ref": "ghost"}}))

        assert report.valid is False
        assert report.code is ValidationCode.DUPLICATE_ENTITY_ID
        assert report.message == "Duplicate entity id: a"

    def test_report_consistency_enforced(self) -> None:
        with pytest.raises(ValueError):
            ValidationReport(valid=True, code=ValidationCode.INVALID_ENTITY)
        with pytest.raises(ValueError):
            ValidationReport(valid=False)
