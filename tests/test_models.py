"""Tests for doccov.models."""

from __future__ import annotations

from doccov.models import (
    DocsMetadata,
    DriftCategory,
    DriftRecord,
    DriftType,
    content_hash,
    spec_from_dict,
    spec_pair_hash,
    spec_to_dict,
)


def _payload() -> dict:
    return {
        "meta": {"name": "pkg", "version": "1.2.3"},
        "exports": [
            {
                "id": "add",
                "name": "add",
                "kind": "function",
                "signatures": [
                    {
                        "parameters": [
                            {"name": "a", "declaredType": "number", "required": True},
                            {"name": "b", "declaredType": "number", "required": False},
                        ],
                        "returns": {"declaredType": "number"},
                    }
                ],
                "examples": ["add(1, 2)"],
                "source": {"file": "src/add.ts", "line": 4},
                "rawComments": "/** Adds numbers. */",
            }
        ],
        "types": [{"id": "Options", "name": "Options", "kind": "interface"}],
    }


def test_spec_from_dict_parses_exports_and_types() -> None:
    spec = spec_from_dict(_payload())

    assert spec.meta.name == "pkg"
    assert spec.meta.version == "1.2.3"
    export = spec.exports[0]
    assert export.kind == "function"
    assert [p.name for p in export.signatures[0].parameters] == ["a", "b"]
    assert export.signatures[0].parameters[1].required is False
    assert export.signatures[0].returns is not None
    assert export.signatures[0].returns.declared_type == "number"
    assert export.source is not None and export.source.line == 4
    assert export.raw_comment == "/** Adds numbers. */"
    assert spec.types[0].kind == "interface"
    assert not spec.is_enriched


def test_spec_from_dict_skips_entries_without_id_and_duplicates() -> None:
    payload = _payload()
    payload["exports"].append({"name": "noId", "kind": "function"})
    payload["exports"].append({"id": "add", "name": "shadow", "kind": "variable"})

    spec = spec_from_dict(payload)

    assert [export.id for export in spec.exports] == ["add"]
    assert spec.exports[0].name == "add"


def test_spec_from_dict_tolerates_malformed_shapes() -> None:
    spec = spec_from_dict({"exports": [{"id": "x", "kind": "mystery", "signatures": "nope"}]})

    assert spec.meta.name == "unknown"
    assert spec.exports[0].signatures == ()
    assert not spec.exports[0].has_known_kind


def test_spec_round_trips_through_dict() -> None:
    spec = spec_from_dict(_payload())

    assert spec_from_dict(spec_to_dict(spec)) == spec


def test_docs_metadata_is_clamped_and_filters_unknown_values() -> None:
    docs = DocsMetadata.from_dict(
        {
            "coverageScore": 140,
            "missing": ["description", "bogus"],
            "drift": [{"type": "param-mismatch", "issue": "x"}, {"type": "nope", "issue": "y"}],
        }
    )

    assert docs is not None
    assert docs.coverage_score == 100
    assert docs.missing == ("description",)
    assert [record.type for record in docs.drift] == [DriftType.PARAM_MISMATCH]


def test_drift_record_category_is_derived_from_type() -> None:
    record = DriftRecord(type=DriftType.VISIBILITY_MISMATCH, issue="vis")

    assert record.category is DriftCategory.DRIFT
    assert record.to_dict() == {"type": "visibility-mismatch", "issue": "vis", "category": "drift"}
    assert DriftRecord(DriftType.EXAMPLE_RUNTIME_ERROR, "boom").category is DriftCategory.EXAMPLE
    assert DriftRecord(DriftType.PARAM_TYPE_MISMATCH, "t").category is DriftCategory.BREAKING


def test_content_hash_is_stable_and_order_sensitive() -> None:
    spec = spec_from_dict(_payload())
    same = spec_from_dict(_payload())
    other_payload = _payload()
    other_payload["meta"]["version"] = "2.0.0"
    other = spec_from_dict(other_payload)

    assert content_hash(spec) == content_hash(same)
    assert content_hash(spec) != content_hash(other)
    assert spec_pair_hash(spec, other) != spec_pair_hash(other, spec)
