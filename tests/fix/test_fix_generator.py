"""Tests for fix generation and patch merging."""

from __future__ import annotations

from dataclasses import replace

import pytest

from doccov.comments import DocCommentPatch, DocParam, DocReturn, parse_doc_comment
from doccov.drift import compute_export_drift
from doccov.fix.generator import (
    FixKind,
    FixSuggestion,
    PatchFragment,
    build_fix_plan,
    categorize_drifts,
    generate_fix,
    generate_fixes,
    is_fixable,
    merge_fixes,
)
from doccov.models import DriftRecord, DriftType, Export, TypeParameter
from tests._fixtures.spec_builder import SpecBuilder, param


def _single_drift_exports(builder: SpecBuilder) -> list[tuple[Export, DriftType]]:
    return [
        (
            builder.function(
                "charge",
                param("amount", "number"),
                raw_comment="/**\n * @param {string} amount - The amount\n */",
            ),
            DriftType.PARAM_TYPE_MISMATCH,
        ),
        (
            builder.function(
                "count", returns="number", raw_comment="/**\n * @returns {string} Count\n */"
            ),
            DriftType.RETURN_TYPE_MISMATCH,
        ),
        (
            builder.function(
                "greet",
                param("name", "string", required=False),
                raw_comment="/**\n * @param {string} name\n */",
            ),
            DriftType.OPTIONALITY_MISMATCH,
        ),
        (
            builder.function(
                "send",
                param("recipient", "string"),
                raw_comment="/**\n * @param {string} to - Who\n */",
            ),
            DriftType.PARAM_MISMATCH,
        ),
        (
            builder.function(
                "clone",
                type_parameters=[TypeParameter("T", "object")],
                raw_comment="/**\n * @template {string} T\n */",
            ),
            DriftType.GENERIC_CONSTRAINT_MISMATCH,
        ),
        (
            builder.function("old", deprecated="Use new", raw_comment="/** Old. */"),
            DriftType.DEPRECATED_MISMATCH,
        ),
        (
            builder.function("fresh", raw_comment="/**\n * Fresh.\n * @deprecated\n */"),
            DriftType.DEPRECATED_MISMATCH,
        ),
    ]


def test_every_drift_type_has_a_handler_entry() -> None:
    for drift_type in DriftType:
        is_fixable(drift_type)


def test_categorize_drifts_partitions_by_fixability() -> None:
    records = [
        DriftRecord(DriftType.PARAM_TYPE_MISMATCH, "t"),
        DriftRecord(DriftType.EXAMPLE_RUNTIME_ERROR, "boom"),
        DriftRecord(DriftType.EXAMPLE_ASSERTION_FAILURE, "assert"),
        DriftRecord(DriftType.VISIBILITY_MISMATCH, "vis"),
        DriftRecord(DriftType.OPTIONALITY_MISMATCH, "opt"),
        DriftRecord(DriftType.RETURN_TYPE_MISMATCH, "ret"),
        DriftRecord(DriftType.PARAM_MISMATCH, "name"),
    ]

    partition = categorize_drifts(records)

    assert [r.issue for r in partition.fixable] == ["t", "opt", "ret", "name"]
    assert [r.issue for r in partition.non_fixable] == ["boom", "assert", "vis"]


def test_param_type_scenario_is_fixable(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "charge",
        param("amount", "number"),
        raw_comment="/**\n * @param {string} amount - The amount\n */",
    )

    records = compute_export_drift(export)

    assert len(records) == 1
    assert records[0].type is DriftType.PARAM_TYPE_MISMATCH
    assert "number" in (records[0].suggestion or "")
    assert categorize_drifts(records).fixable == list(records)


def test_fix_closure_for_each_fixable_type(spec_builder: SpecBuilder) -> None:
    for export, drift_type in _single_drift_exports(spec_builder):
        records = compute_export_drift(export)
        assert [record.type for record in records] == [drift_type], export.id

        patch = parse_doc_comment(export.raw_comment)
        fix = generate_fix(records[0], export, patch)
        assert fix is not None, export.id
        fixed_text = build_fix_plan(export).comment_text
        fixed = replace(export, raw_comment=fixed_text)

        remaining = [r for r in compute_export_drift(fixed) if r.type is drift_type]
        assert remaining == [], export.id


def test_rename_fix_keeps_description(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "send",
        param("recipient", "string"),
        raw_comment="/**\n * @param {string} to - Who receives it\n */",
    )
    patch = parse_doc_comment(export.raw_comment)
    record = compute_export_drift(export)[0]

    fix = generate_fix(record, export, patch)

    assert fix is not None
    assert fix.kind is FixKind.RENAME_PARAM
    merged = merge_fixes(patch, [fix])
    assert merged.params == (DocParam(name="recipient", type="string", description="Who receives it"),)


def test_unknown_param_fix_removes_it(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "one",
        param("a"),
        raw_comment="/**\n * @param {number} a\n * @param {number} extra\n */",
    )
    patch = parse_doc_comment(export.raw_comment)
    record = compute_export_drift(export)[0]

    fix = generate_fix(record, export, patch)

    assert fix is not None
    assert fix.kind is FixKind.REMOVE_PARAM
    assert merge_fixes(patch, [fix]).param_names == ["a"]


def test_missing_param_is_inserted_in_signature_order(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "span",
        param("start"),
        param("middle", required=False),
        param("end"),
        raw_comment="/**\n * @param {number} start\n * @param {number} end\n */",
    )

    plan = build_fix_plan(export)

    assert plan.patch.param_names == ["start", "middle", "end"]
    assert plan.patch.param("middle") == DocParam(name="middle", type="number", optional=True)


def test_visibility_drift_is_skipped(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function("hidden", raw_comment="/** Hidden.\n * @private\n */")

    fixes, skipped = generate_fixes(export)

    assert [record.type for record in skipped] == [DriftType.VISIBILITY_MISMATCH]
    assert all(fix.drift_type is None for fix in fixes)


def test_missing_signals_produce_placeholder_and_returns(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function("total", param("items", "Item[]"), returns="number")

    plan = build_fix_plan(export, description_placeholder="Describe {name}.")

    assert plan.patch.description == "Describe total."
    assert plan.patch.param("items") == DocParam(name="items", type="Item[]")
    assert plan.patch.returns == DocReturn(type="number")
    assert plan.comment_text == "\n".join(
        [
            "/**",
            " * Describe total.",
            " *",
            " * @param {Item[]} items",
            " * @returns {number}",
            " */",
        ]
    )


def test_merge_fixes_later_wins_and_untouched_fields_survive() -> None:
    existing = DocCommentPatch(
        description="Keep me.",
        params=(DocParam(name="a", type="string"),),
        examples=("a()",),
    )
    first = FixSuggestion(
        kind=FixKind.UPDATE_PARAM_TYPE,
        description="first",
        fragment=PatchFragment(op="param", name="a", param=DocParam(name="a", type="number")),
    )
    second = FixSuggestion(
        kind=FixKind.UPDATE_PARAM_TYPE,
        description="second",
        fragment=PatchFragment(op="param", name="a", param=DocParam(name="a", type="bigint")),
    )

    merged = merge_fixes(existing, [first, second])

    assert merged.param("a") == DocParam(name="a", type="bigint")
    assert merged.description == "Keep me."
    assert merged.examples == ("a()",)


def test_type_and_optionality_fixes_on_one_parameter_both_apply(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "pay",
        param("amount", "number"),
        raw_comment="/**\n * Pay.\n * @param {string} [amount] - The amount\n */",
    )
    before = [record.type for record in compute_export_drift(export)]

    plan = build_fix_plan(export)
    after = compute_export_drift(replace(export, raw_comment=plan.comment_text))

    assert before == [DriftType.OPTIONALITY_MISMATCH, DriftType.PARAM_TYPE_MISMATCH]
    assert plan.patch.param("amount") == DocParam(
        name="amount", type="number", description="The amount", optional=False
    )
    assert after == ()


def test_param_field_fixes_keep_other_fields() -> None:
    existing = DocCommentPatch(
        params=(DocParam(name="a", type="string", description="An a", optional=True, default="1"),)
    )
    fixes = [
        FixSuggestion(
            kind=FixKind.UPDATE_PARAM_OPTIONALITY,
            description="required",
            fragment=PatchFragment(op="param-optional", name="a", optional=False),
        ),
        FixSuggestion(
            kind=FixKind.UPDATE_PARAM_TYPE,
            description="type",
            fragment=PatchFragment(op="param-type", name="a", text="number"),
        ),
    ]

    merged = merge_fixes(existing, fixes)

    assert merged.param("a") == DocParam(name="a", type="number", description="An a")


def test_param_fragment_without_value_is_rejected() -> None:
    with pytest.raises(ValueError):
        PatchFragment(op="param", name="a").apply(DocCommentPatch())


def test_plan_preserves_indent(spec_builder: SpecBuilder) -> None:
    export = spec_builder.function(
        "charge",
        param("amount", "number"),
        description="Charge.",
        raw_comment="/**\n * Charge.\n * @param {string} amount - The amount\n */",
    )

    plan = build_fix_plan(export, indent="    ")

    assert plan.comment_text.splitlines()[0] == "    /**"
    assert "     * @param {number} amount - The amount" in plan.comment_text


@pytest.mark.parametrize("drift_type", [DriftType.EXAMPLE_RUNTIME_ERROR, DriftType.VISIBILITY_MISMATCH])
def test_non_fixable_types_generate_nothing(drift_type: DriftType, spec_builder: SpecBuilder) -> None:
    export = spec_builder.function("x")

    assert generate_fix(DriftRecord(drift_type, "issue"), export, DocCommentPatch()) is None
