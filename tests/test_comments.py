"""Tests for doc comment parsing and serialisation."""

from __future__ import annotations

import pytest

from doccov.comments import (
    DocCommentPatch,
    DocParam,
    DocReturn,
    DocTemplate,
    parse_doc_comment,
    parse_param_tag,
    parse_template_tag,
    serialize_doc_comment,
    split_braced_type,
)


def test_parse_doc_comment_extracts_all_fields() -> None:
    patch = parse_doc_comment(
        """/**
         * Fetches a user.
         *
         * More detail here.
         * @template {object} T
         * @param {string} id - The user id
         * @param {Options} [opts={}] - Optional settings
         * @returns {Promise<User>} The user
         * @deprecated Use loadUser instead
         * @internal
         * @example
         * const user = await fetchUser("1");
         * @see loadUser
         */"""
    )

    assert patch.description == "Fetches a user.\n\nMore detail here."
    assert patch.templates == (DocTemplate(name="T", constraint="object"),)
    assert patch.param("id") == DocParam(name="id", type="string", description="The user id")
    opts = patch.param("opts")
    assert opts is not None
    assert opts.optional is True
    assert opts.default == "{}"
    assert patch.returns == DocReturn(type="Promise<User>", description="The user")
    assert patch.deprecated == "Use loadUser instead"
    assert patch.visibility == "internal"
    assert patch.examples == ('const user = await fetchUser("1");',)
    assert patch.other_tags == (("see", "loadUser"),)


def test_parse_doc_comment_handles_single_line_and_empty() -> None:
    assert parse_doc_comment("/** Adds two numbers. */").description == "Adds two numbers."
    assert parse_doc_comment(None).is_empty
    assert parse_doc_comment("   ").is_empty


def test_bare_deprecated_tag_is_empty_string() -> None:
    patch = parse_doc_comment("/** @deprecated */")

    assert patch.deprecated == ""


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("{number} amount - The amount", DocParam(name="amount", type="number", description="The amount")),
        ("amount The amount", DocParam(name="amount", description="The amount")),
        ("{string} [name] -", DocParam(name="name", type="string", optional=True)),
        ("{{a: string}} opts", DocParam(name="opts", type="{a: string}")),
    ],
)
def test_parse_param_tag(text: str, expected: DocParam) -> None:
    assert parse_param_tag(text) == expected


def test_parse_param_tag_requires_a_name() -> None:
    assert parse_param_tag("{string}") is None


def test_parse_template_tag_variants() -> None:
    assert parse_template_tag("{string} K") == [DocTemplate(name="K", constraint="string")]
    assert parse_template_tag("T extends object") == [DocTemplate(name="T", constraint="object")]
    assert parse_template_tag("A, B") == [DocTemplate(name="A"), DocTemplate(name="B")]


def test_split_braced_type_handles_nesting() -> None:
    assert split_braced_type("{Record<string, {a: 1}>} rest") == ("Record<string, {a: 1}>", "rest")
    assert split_braced_type("plain") == (None, "plain")


def test_serialize_short_patch_on_one_line() -> None:
    assert serialize_doc_comment(DocCommentPatch(description="Adds numbers.")) == "/** Adds numbers. */"
    assert serialize_doc_comment(DocCommentPatch()) == "/** */"


def test_serialize_orders_tags_and_applies_indent() -> None:
    patch = DocCommentPatch(
        description="Adds numbers.",
        params=(
            DocParam(name="a", type="number", description="First"),
            DocParam(name="b", type="number", optional=True, default="0"),
        ),
        returns=DocReturn(type="number"),
        deprecated="",
        examples=("add(1, 2)",),
    )

    assert serialize_doc_comment(patch, "  ") == "\n".join(
        [
            "  /**",
            "   * Adds numbers.",
            "   *",
            "   * @param {number} a - First",
            "   * @param {number} [b=0]",
            "   * @returns {number}",
            "   * @deprecated",
            "   * @example",
            "   * add(1, 2)",
            "   */",
        ]
    )


@pytest.mark.parametrize(
    "patch",
    [
        DocCommentPatch(),
        DocCommentPatch(description="One line."),
        DocCommentPatch(
            description="Multi\nline description.",
            params=(DocParam(name="x", type="string", description="An x\nwith detail"),),
            returns=DocReturn(type="void", description="Nothing"),
            templates=(DocTemplate(name="T", constraint="object"), DocTemplate(name="U")),
            deprecated="Use y",
            visibility="alpha",
            examples=("const a = 1;\n  nested();",),
            other_tags=(("since", "1.0"),),
        ),
        DocCommentPatch(
            description="Service.",
            examples=("@Injectable()\nclass Foo {}",),
            other_tags=(("category", "di"),),
        ),
    ],
)
def test_serialize_parse_serialize_is_stable(patch: DocCommentPatch) -> None:
    text = serialize_doc_comment(patch, "    ")

    assert serialize_doc_comment(parse_doc_comment(text), "    ") == text


def test_with_param_replaces_in_place_and_appends() -> None:
    patch = DocCommentPatch(params=(DocParam(name="a"), DocParam(name="b")))

    renamed = patch.with_param(DocParam(name="c"), replacing="a")
    appended = patch.with_param(DocParam(name="d"))

    assert renamed.param_names == ["c", "b"]
    assert appended.param_names == ["a", "b", "d"]
    assert patch.without_param("a").param_names == ["b"]


def test_decorators_inside_example_stay_in_the_example() -> None:
    patch = parse_doc_comment(
        """/**
         * Registers a service.
         * @example
         * @Injectable()
         * class Foo {}
         * @returns nothing
         */"""
    )

    assert patch.examples == ("@Injectable()\nclass Foo {}",)
    assert patch.returns == DocReturn(description="nothing")
    assert patch.other_tags == ()
