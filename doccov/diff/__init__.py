"""Snapshot diffing, member changes and docs impact scanning."""

from .impact import (
    DocsImpact,
    DocsImpactSummary,
    ImpactedFile,
    ImpactReference,
    ImpactStats,
    analyze_docs_impact,
)
from .markdown import CodeBlock, MarkdownDocFile, parse_markdown_file, parse_markdown_files
from .members import MemberChange, diff_members, group_member_changes_by_class
from .spec_diff import (
    CategorizedBreaking,
    SemverRecommendation,
    SpecDiff,
    calculate_next_version,
    categorize_breaking,
    diff_spec,
    recommend_semver_bump,
)

__all__ = [
    "CategorizedBreaking",
    "CodeBlock",
    "DocsImpact",
    "DocsImpactSummary",
    "ImpactReference",
    "ImpactStats",
    "ImpactedFile",
    "MarkdownDocFile",
    "MemberChange",
    "SemverRecommendation",
    "SpecDiff",
    "analyze_docs_impact",
    "calculate_next_version",
    "categorize_breaking",
    "diff_members",
    "diff_spec",
    "group_member_changes_by_class",
    "parse_markdown_file",
    "parse_markdown_files",
    "recommend_semver_bump",
]
