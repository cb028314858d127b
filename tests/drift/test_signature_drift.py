"""Tests for return type and generic constraint drift."""

from __future__ import annotations

from doccov.comments import parse_doc_comment
from doccov.drift.signature import detect_generic_constraint_drift, detect_return_type_drift
from doccov.models import DriftType, TypeParameter
from tests._fixtures.spec_builder import SpecBuilder, param


def test_return_type_mismatch(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "count", returns="number", raw_comment="/**\n * @returns {string} The count\n */"
    )

    records = detect_return_type_drift(export, parse_doc_comment(export.raw_comment))

    assert len(records) == 1
    assert records[0].type is DriftType.RETURN_TYPE_MISMATCH
    assert records[0].issue == "JSDoc documents string but the function returns number."
    assert records[0].suggestion == "Update @returns to number."
    assert records[0].target == "returns"


def test_missing_promise_wrapper_is_called_out(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "fetchUser", returns="Promise<User>", raw_comment="/**\n * @returns {User}\n */"
    )

    records = detect_return_type_drift(export, parse_doc_comment(export.raw_comment))

    assert records[0].issue == "JSDoc documents User but the function returns Promise<User>."


def test_void_and_undefined_are_equivalent(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "noop", returns="void", raw_comment="/**\n * @returns {undefined}\n */"
    )

    assert detect_return_type_drift(export, parse_doc_comment(export.raw_comment)) == []


def test_untyped_returns_tag_is_not_compared(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "count", returns="number", raw_comment="/**\n * @returns The count\n */"
    )

    assert detect_return_type_drift(export, parse_doc_comment(export.raw_comment)) == []


def test_generic_constraint_mismatch(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "clone",
        param("value", "T"),
        returns="T",
        type_parameters=[TypeParameter(name="T", constraint="object")],
        raw_comment="/**\n * @template {string} T\n */",
    )

    records = detect_generic_constraint_drift(export, parse_doc_comment(export.raw_comment))

    assert len(records) == 1
    assert records[0].type is DriftType.GENERIC_CONSTRAINT_MISMATCH
    assert records[0].issue == (
        'JSDoc constrains template "T" to string but the declaration constrains it to object.'
    )
    assert records[0].suggestion == "Update @template to {object} T to reflect the declaration."


def test_generic_constraint_omitted_in_docs(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "clone",
        type_parameters=[TypeParameter(name="T", constraint="object")],
        raw_comment="/**\n * @template T\n */",
    )

    records = detect_generic_constraint_drift(export, parse_doc_comment(export.raw_comment))

    assert [record.target for record in records] == ["T"]
    assert "omits the constraint" in records[0].issue


def test_matching_or_undeclared_templates_do_not_drift(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "clone",
        type_parameters=[TypeParameter(name="T", constraint="object")],
        raw_comment="/**\n * @template T extends object\n * @template U\n */",
    )

    assert detect_generic_constraint_drift(export, parse_doc_comment(export.raw_comment)) == []
