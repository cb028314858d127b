"""Tests for markdown code block extraction."""

from __future__ import annotations

import textwrap

from doccov.diff.markdown import (
    block_references,
    extract_function_calls,
    extract_imports,
    extract_method_calls,
    find_instantiations,
    parse_markdown_file,
)

_README = textwrap.dedent(
    """\
    # Usage

    ```ts
    import { createClient, type Options as Opts } from "pkg";
    const client = createClient({});
    client.fetchUser("1");
    ```

    ```bash
    npm install pkg
    ```

    ~~~javascript
    const w = new Widget();
    ~~~
    """
)


def test_parse_markdown_keeps_only_executable_blocks() -> None:
    doc = parse_markdown_file(_README, "README.md")

    assert [block.lang for block in doc.code_blocks] == ["ts", "javascript"]
    first = doc.code_blocks[0]
    assert first.start_line == 4
    assert first.end_line == 6
    assert first.code.startswith("import { createClient")


def test_extract_imports_handles_aliases_and_type_imports() -> None:
    refs = extract_imports('import { a, b as c, type D } from "x";\nimport Default from "y";')

    assert [ref.name for ref in refs] == ["a", "b", "D", "Default"]
    assert refs[-1].line == 2


def test_extract_function_calls_skips_keywords_and_members() -> None:
    refs = extract_function_calls("if (ok) { run(); obj.method(); }\nreturn build<T>(x);")

    assert [(ref.name, ref.line) for ref in refs] == [("run", 1), ("build", 2)]


def test_extract_method_calls_and_instantiations() -> None:
    code = "const w = new Widget();\nw.render();\nw?.update(1);"

    assert [(c.object_name, c.method_name, c.line) for c in extract_method_calls(code)] == [
        ("w", "render", 2),
        ("w", "update", 3),
    ]
    assert find_instantiations(code, "Widget") == [1]


def test_block_references_report_file_lines() -> None:
    block = parse_markdown_file(_README, "README.md").code_blocks[0]

    refs = block_references(block, ["createClient", "missing"])

    assert [(ref.name, ref.line) for ref in refs] == [("createClient", 4)]
