"""Tests for parameter name, optionality and type drift."""

from __future__ import annotations

from doccov.comments import parse_doc_comment
from doccov.drift.params import (
    detect_optionality_drift,
    detect_param_drift,
    detect_param_type_drift,
    match_parameters,
)
from doccov.models import DriftType
from tests._fixtures.spec_builder import SpecBuilder, param


def test_param_type_mismatch_suggests_declared_type(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "charge",
        param("amount", "number"),
        raw_comment="/**\n * Charge.\n * @param {string} amount - The amount\n */",
    )

    records = detect_param_type_drift(export, parse_doc_comment(export.raw_comment))

    assert len(records) == 1
    record = records[0]
    assert record.type is DriftType.PARAM_TYPE_MISMATCH
    assert "number" in (record.suggestion or "")
    assert record.suggestion == "Update @param {number} amount to match the signature."
    assert record.target == "amount"


def test_equivalent_types_do_not_drift(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "pick",
        param("value", "string | number"),
        param("cb", "unknown"),
        raw_comment="/**\n * @param {number|string} value\n * @param {Function} cb\n */",
    )

    assert detect_param_type_drift(export, parse_doc_comment(export.raw_comment)) == []


def test_unknown_documented_param_with_similar_name(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "load",
        param("userId", "string"),
        param("userName", "string"),
        raw_comment=(
            "/**\n * @param {string} userId\n * @param {string} userName\n"
            " * @param {string} fullUserName\n */"
        ),
    )

    records = detect_param_drift(export, parse_doc_comment(export.raw_comment))

    assert len(records) == 1
    assert records[0].issue == 'JSDoc documents parameter "fullUserName" which is not present in the signature.'
    assert records[0].suggestion == 'Did you mean "userName"?'


def test_positional_rename_reports_single_mismatch(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "send",
        param("recipient", "string"),
        param("body", "string"),
        raw_comment="/**\n * @param {string} to\n * @param {string} body\n */",
    )
    patch = parse_doc_comment(export.raw_comment)

    matching = match_parameters(export, patch)
    records = detect_param_drift(export, patch)

    assert matching.renames["to"].name == "recipient"
    assert matching.undocumented == []
    assert len(records) == 1
    assert records[0].target == "to"
    assert records[0].suggestion == 'Did you mean "recipient"?'


def test_reordered_params_match_by_name(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "range",
        param("start"),
        param("end"),
        raw_comment="/**\n * @param {number} end\n * @param {number} start\n */",
    )

    assert detect_param_drift(export, parse_doc_comment(export.raw_comment)) == []


def test_undocumented_param_is_reported(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "clamp",
        param("value"),
        param("max"),
        raw_comment="/**\n * @param {number} value\n */",
    )

    records = detect_param_drift(export, parse_doc_comment(export.raw_comment))

    assert [record.target for record in records] == ["max"]
    assert records[0].issue == 'Parameter "max" is missing from the doc comment.'
    assert records[0].suggestion == "Add @param {number} max."


def test_no_params_documented_means_no_param_drift(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function("clamp", param("value"), raw_comment="/** Clamp. */")

    assert detect_param_drift(export, parse_doc_comment(export.raw_comment)) == []


def test_destructured_property_docs_are_ignored(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "configure",
        param("opts", "Options"),
        raw_comment="/**\n * @param {Options} opts\n * @param {string} opts.name\n */",
    )

    assert detect_param_drift(export, parse_doc_comment(export.raw_comment)) == []


def test_optionality_mismatch_both_directions(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "greet",
        param("name", "string"),
        param("greeting", "string", required=False),
        raw_comment="/**\n * @param {string} [name]\n * @param {string} greeting\n */",
    )

    records = detect_optionality_drift(export, parse_doc_comment(export.raw_comment))

    assert [record.target for record in records] == ["name", "greeting"]
    assert all(record.type is DriftType.OPTIONALITY_MISMATCH for record in records)
    assert "optional but the signature requires it" in records[0].issue
    assert records[1].suggestion == "Document greeting as [greeting] or make it required in the signature."
