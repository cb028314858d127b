"""Tests for deprecation and visibility drift."""

from __future__ import annotations

from doccov.comments import parse_doc_comment
from doccov.drift.semantic import detect_deprecated_drift, detect_visibility_drift, visibility_matches
from doccov.models import DriftType
from tests._fixtures.spec_builder import SpecBuilder, method


def test_code_deprecated_without_tag(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function("old", deprecated=True, raw_comment="/** Old. */")

    records = detect_deprecated_drift(export, parse_doc_comment(export.raw_comment))

    assert len(records) == 1
    assert records[0].type is DriftType.DEPRECATED_MISMATCH
    assert "@deprecated is missing" in records[0].issue
    assert records[0].target == "old"


def test_tag_without_code_deprecation(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function("fresh", raw_comment="/** @deprecated */")

    records = detect_deprecated_drift(export, parse_doc_comment(export.raw_comment))

    assert records[0].issue == 'JSDoc marks "fresh" as deprecated but the declaration is not.'


def test_deprecation_in_sync(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "old", deprecated="Use new", raw_comment="/** @deprecated Use new */"
    )

    assert detect_deprecated_drift(export, parse_doc_comment(export.raw_comment)) == []


def test_exports_are_public(spec_builder: SpecBuilder) -> None:
    private = spec_builder.function("hidden", raw_comment="/** @private */")
    public = spec_builder.function("shown", raw_comment="/** @public */")

    records = detect_visibility_drift(private, parse_doc_comment(private.raw_comment))

    assert records[0].type is DriftType.VISIBILITY_MISMATCH
    assert records[0].issue == 'JSDoc marks "hidden" as @private but the declaration is public.'
    assert detect_visibility_drift(public, parse_doc_comment(public.raw_comment)) == []


def test_member_visibility_drift(spec_builder: SpecBuilder) -> None:
    export = spec_builder.klass(
        "Widget",
        method("secret", visibility="private", raw_comment="/** @public */"),
        method("helper", visibility="protected", raw_comment="/** @internal */"),
        method("render", raw_comment="/** Renders. */"),
    )

    records = detect_visibility_drift(export, parse_doc_comment(export.raw_comment))

    assert [record.target for record in records] == ["Widget#secret"]
    assert records[0].suggestion == "Remove @public or mark the declaration public."


def test_visibility_matches_internal_against_non_public() -> None:
    assert visibility_matches("internal", "private")
    assert visibility_matches("internal", "protected")
    assert not visibility_matches("internal", "public")
    assert visibility_matches("protected", "protected")
    assert not visibility_matches("protected", "private")
