"""
Unit Tests for the Schema Matcher

Covers structural validation against the OpenRTB 2.6 models, error
classification, validated field paths and raw-output coercion.
"""

import pytest

from ortb.validation.errors import (
    MatcherShapeError,
    SchemaMatcherError,
    UnsupportedSpecVersionError,
)
from ortb.validation.schema_matcher import (
    REQUIRED_FIELD_CODE,
    MatchResult,
    PydanticSchemaMatcher,
    coerce_match_result,
    collect_field_paths,
    field_path,
)


@pytest.fixture
def matcher():
    return PydanticSchemaMatcher()


class TestFieldPaths:
    def test_field_path_joins_location(self):
        assert field_path(("imp", 0, "banner", "w")) == "imp.0.banner.w"

    def test_empty_location_is_root(self):
        assert field_path(()) == "root"

    def test_collect_field_paths(self, valid_request):
        assert collect_field_paths(valid_request) == [
            "id", "imp", "imp.0.id", "imp.0.banner", "imp.0.banner.w", "imp.0.banner.h", "at",
        ]

    def test_ext_is_not_descended(self):
        paths = collect_field_paths({"id": "r", "ext": {"custom": {"deep": 1}}})
        assert paths == ["id", "ext"]


class TestPydanticSchemaMatcher:
    def test_valid_request(self, matcher, valid_request):
        match = matcher.validate_against_schema(valid_request, "2.6")
        assert match.is_valid
        assert match.errors == []
        assert "imp.0.banner.w" in match.validated_fields

    def test_valid_request_recommended_field_warnings(self, matcher, valid_request):
        match = matcher.validate_against_schema(valid_request, "2.6")
        assert [w.code for w in match.warnings] == ["ORTB_RECOMMENDED_FIELD_MISSING"] * 2
        assert {w.field for w in match.warnings} == {"site", "device"}

    def test_complete_request_has_no_issues(self, matcher, complete_request):
        match = matcher.validate_against_schema(complete_request, "2.6")
        assert match.is_valid
        assert match.warnings == []

    def test_missing_auction_type_is_required_field_error(self, matcher, valid_request):
        del valid_request["at"]
        match = matcher.validate_against_schema(valid_request, "2.6")
        assert not match.is_valid
        assert len(match.errors) == 1
        error = match.errors[0]
        assert error.field == "at"
        assert error.code == REQUIRED_FIELD_CODE
        assert error.type == "required-field"

    def test_missing_impression_id(self, matcher, valid_request):
        del valid_request["imp"][0]["id"]
        match = matcher.validate_against_schema(valid_request, "2.6")
        assert [e.field for e in match.errors] == ["imp.0.id"]

    def test_empty_impressions(self, matcher, valid_request):
        valid_request["imp"] = []
        match = matcher.validate_against_schema(valid_request, "2.6")
        codes = {e.code for e in match.errors}
        assert "ORTB_MISSING_IMPRESSIONS" in codes

    def test_empty_request_id(self, matcher, valid_request):
        valid_request["id"] = ""
        match = matcher.validate_against_schema(valid_request, "2.6")
        assert [e.code for e in match.errors] == ["ORTB_INVALID_REQUEST_ID"]
        assert match.errors[0].type == "value"

    def test_wrong_type_is_schema_error(self, matcher, valid_request):
        valid_request["imp"][0]["banner"]["w"] = "300"
        match = matcher.validate_against_schema(valid_request, "2.6")
        assert len(match.errors) == 1
        error = match.errors[0]
        assert error.field == "imp.0.banner.w"
        assert error.type == "schema"
        assert error.actual_value == "300"

    def test_pattern_mismatch_is_format_error(self, matcher, complete_request):
        complete_request["device"]["geo"] = {"country": "us"}
        match = matcher.validate_against_schema(complete_request, "2.6")
        assert [(e.field, e.type) for e in match.errors] == [("device.geo.country", "format")]

    def test_error_paths_are_not_validated(self, matcher, valid_request):
        valid_request["imp"][0]["banner"]["w"] = "300"
        match = matcher.validate_against_schema(valid_request, "2.6")
        assert "imp.0.banner.w" not in match.validated_fields
        assert "imp.0.banner.h" in match.validated_fields

    def test_unknown_fields_are_allowed(self, matcher, valid_request):
        valid_request["exchange_specific"] = {"anything": True}
        match = matcher.validate_against_schema(valid_request, "2.6")
        assert match.is_valid

    def test_non_object_request(self, matcher):
        match = matcher.validate_against_schema(["not", "a", "request"], "2.6")
        assert not match.is_valid
        assert match.errors[0].field == "root"
        assert match.warnings == []

    def test_unsupported_version(self, matcher, valid_request):
        with pytest.raises(UnsupportedSpecVersionError) as exc_info:
            matcher.validate_against_schema(valid_request, "3.0")
        assert "3.0" in str(exc_info.value)

    def test_unserializable_request(self, matcher):
        with pytest.raises(SchemaMatcherError):
            matcher.validate_against_schema({"id": object()}, "2.6")

    def test_custom_rules_replace_defaults(self, valid_request):
        matcher = PydanticSchemaMatcher(rules=[])
        match = matcher.validate_against_schema(valid_request, "2.6")
        assert match.warnings == []


class TestCoerceMatchResult:
    def test_accepts_match_result(self):
        match = MatchResult(is_valid=True, errors=[], warnings=[], validated_fields=[])
        assert coerce_match_result(match) is match

    def test_accepts_plain_dict(self):
        raw = {
            "is_valid": False,
            "errors": [{
                "field": "at", "message": "missing", "code": REQUIRED_FIELD_CODE,
                "type": "required-field",
            }],
            "warnings": [],
            "validated_fields": ["id"],
        }
        match = coerce_match_result(raw)
        assert match.errors[0].field == "at"

    @pytest.mark.parametrize("raw", [
        None,
        "not a dict",
        {"is_valid": True, "errors": []},
        {"is_valid": True, "errors": [], "warnings": [], "validated_fields": [], "extra": 1},
        {"is_valid": "yes please", "errors": [], "warnings": [], "validated_fields": []},
    ])
    def test_rejects_malformed_output(self, raw):
        with pytest.raises(MatcherShapeError):
            coerce_match_result(raw)

    def test_rejects_inconsistent_validity(self):
        raw = {
            "is_valid": True,
            "errors": [{"field": "at", "message": "m", "code": "X", "type": "value"}],
            "warnings": [],
            "validated_fields": [],
        }
        with pytest.raises(MatcherShapeError):
            coerce_match_result(raw)
