"""Turn external example-runner results into drift records."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import List, Mapping, NamedTuple, Optional, Protocol, Sequence

from ..comments import DocCommentPatch
from ..logging import get_logger
from ..models import DriftRecord, DriftType, Export

_LOGGER = get_logger("drift.examples")

_FENCE_OPEN = re.compile(r"^```(?:ts|typescript|js|javascript|tsx|jsx)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```\s*$")
_ASSERTION = re.compile(r"(?://|#)\s*=>\s*(.+?)\s*$")
_NON_ASSERTION_COMMENT = re.compile(r"//(?!\s*=>)")
_ERROR_LINE = re.compile(r"^(?:\w*Error):\s*(.+)")
_MAX_ERROR_LENGTH = 100


@dataclass(frozen=True)
class ExampleRunResult:
    """Outcome reported by the external example runner for one example."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0


class Assertion(NamedTuple):
    line_number: int
    expected: str


class AssertionParser(Protocol):
    """Optional capability that extracts assertions from non-standard comments."""

    def is_available(self) -> bool:
        """Return whether the parser can currently be called."""

    def parse(self, code: str) -> Optional[List[Assertion]]:
        """Return assertions found in ``code``, or ``None`` when nothing was recognised."""


def example_sources(export: Export, patch: DocCommentPatch) -> Sequence[str]:
    return export.examples or patch.examples


def strip_code_fence(code: str) -> str:
    return _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", code.strip())).strip()


def parse_assertions(code: str) -> List[Assertion]:
    """Collect ``// => expected`` markers, numbered by line within the example."""
    assertions: List[Assertion] = []
    for index, line in enumerate(strip_code_fence(code).split("\n"), start=1):
        match = _ASSERTION.search(line)
        if match:
            assertions.append(Assertion(line_number=index, expected=match.group(1).strip()))
    return assertions


def has_non_assertion_comments(code: str) -> bool:
    return bool(_NON_ASSERTION_COMMENT.search(code))


def detect_example_runtime_errors(
    export: Export,
    patch: DocCommentPatch,
    results: Mapping[int, ExampleRunResult],
) -> List[DriftRecord]:
    examples = example_sources(export, patch)
    records: List[DriftRecord] = []
    for index in range(len(examples)):
        result = results.get(index)
        if result is None or result.success:
            continue
        if "timed out" in result.stderr:
            issue = f"@example timed out after {result.duration_ms}ms."
            suggestion = "Check for infinite loops or long-running operations."
        else:
            issue = f"@example throws at runtime: {extract_error_message(result.stderr)}"
            suggestion = "Fix the example code or update it to match the current API."
        records.append(
            DriftRecord(
                type=DriftType.EXAMPLE_RUNTIME_ERROR,
                issue=issue,
                suggestion=suggestion,
                target=f"example[{index}]",
            )
        )
    return records


def detect_example_assertion_failures(
    export: Export,
    patch: DocCommentPatch,
    results: Mapping[int, ExampleRunResult],
    assertion_parser: Optional[AssertionParser] = None,
) -> List[DriftRecord]:
    examples = example_sources(export, patch)
    records: List[DriftRecord] = []
    for index, example in enumerate(examples):
        result = results.get(index)
        if result is None or not result.success:
            continue
        assertions = parse_assertions(example)
        if not assertions and assertion_parser is not None and has_non_assertion_comments(example):
            assertions = _fallback_assertions(assertion_parser, example)
        if not assertions:
            continue

        output = [line.strip() for line in result.stdout.split("\n") if line.strip()]
        for position, assertion in enumerate(assertions):
            target = f"example[{index}]:line{assertion.line_number}"
            if position >= len(output):
                records.append(
                    DriftRecord(
                        type=DriftType.EXAMPLE_ASSERTION_FAILURE,
                        issue=f'Assertion expected "{assertion.expected}" but no output was produced',
                        suggestion="Ensure the example produces output for each assertion",
                        target=target,
                    )
                )
                continue
            actual = output[position]
            if assertion.expected.strip() == actual:
                continue
            records.append(
                DriftRecord(
                    type=DriftType.EXAMPLE_ASSERTION_FAILURE,
                    issue=f'Assertion failed: expected "{assertion.expected}" but got "{actual}"',
                    suggestion=f"Update assertion to: // => {actual}",
                    target=target,
                )
            )
    return records


def extract_error_message(stderr: str) -> str:
    lines = [line.strip() for line in stderr.split("\n") if line.strip()]
    if not lines:
        return "Unknown error"
    for line in lines:
        if _ERROR_LINE.match(line):
            return line
    first = lines[0]
    return f"{first[:_MAX_ERROR_LENGTH]}..." if len(first) > _MAX_ERROR_LENGTH else first


def _fallback_assertions(parser: AssertionParser, code: str) -> List[Assertion]:
    if not parser.is_available():
        return []
    parsed = parser.parse(code)
    if not parsed:
        return []
    _LOGGER.debug("Assertion parser recognised %d assertion(s)", len(parsed))
    return list(parsed)


__all__ = [
    "Assertion",
    "AssertionParser",
    "ExampleRunResult",
    "detect_example_assertion_failures",
    "detect_example_runtime_errors",
    "example_sources",
    "extract_error_message",
    "has_non_assertion_comments",
    "parse_assertions",
    "strip_code_fence",
]
