"""Rule document loading from Markdown files with YAML frontmatter.

A rule document looks like::

    ---
    paths:
      - "src/**/*.ts"
    ---
    Prefer named exports.

Documents without ``paths`` (or with ``alwaysApply: true``) are common and
apply to every path.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from pydantic import ValidationError

from agentrules.config._issues import LoadIssue, load_error
from agentrules.config._loader import describe_validation_error, parse_frontmatter
from agentrules.config._models import RuleHeader
from agentrules.exceptions import ConfigLoadError, PatternSyntaxError
from agentrules.patterns import validate_pattern
from agentrules.rules import RuleDocument

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

RULE_SUFFIX: str = ".md"


@dataclass(frozen=True, slots=True)
class RuleText:
    """An in-memory rule document.

    Attributes:
        id: Default ID, used unless the frontmatter declares one.
        text: Full document text, optionally starting with frontmatter.
    """

    id: str
    text: str


def parse_rule_document(
    text: str,
    *,
    default_id: str,
    source: Path | None = None,
    registration_order: int = 0,
) -> RuleDocument:
    """Parse a rule document from its text.

    Args:
        text: The document, optionally starting with YAML frontmatter.
        default_id: ID used when the frontmatter has no ``id``.
        source: File the text was read from, if any.
        registration_order: Position in load order.

    Returns:
        A COMMON or SCOPED RuleDocument.

    Raises:
        ConfigLoadError: If the frontmatter is malformed or invalid.
        PatternSyntaxError: If a ``paths`` entry is not a valid glob.
    """
    raw_header, body = parse_frontmatter(text, path=source)

    try:
        header = RuleHeader.model_validate(raw_header or {})
    except ValidationError as e:
        msg = f"Invalid rule header: {describe_validation_error(e)}"
        raise ConfigLoadError(msg, path=source) from e

    doc_id = header.id or default_id

    if header.paths is None:
        return RuleDocument.common(
            doc_id, body, registration_order=registration_order, source=source
        )

    for pattern in header.paths:
        validate_pattern(pattern)

    return RuleDocument.scoped(
        doc_id,
        body,
        header.paths,
        registration_order=registration_order,
        source=source,
    )


def discover_rule_files(directory: Path) -> list[Path]:
    """Find all rule documents under directory, recursively.

    Returns:
        Markdown files sorted by their path relative to directory. Empty if
        the directory does not exist.
    """
    if not directory.is_dir():
        return []

    files = [path for path in directory.rglob(f"*{RULE_SUFFIX}") if path.is_file()]
    return sorted(files, key=lambda p: p.relative_to(directory).as_posix())


def _default_rule_id(path: Path, root: Path) -> str:
    """Derive a rule ID from its path, e.g. ``common/coding-style``."""
    return path.relative_to(root).with_suffix("").as_posix()


def _parse_rule_file(path: Path, root: Path) -> RuleDocument:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Cannot read rule file {path}: {e}"
        raise ConfigLoadError(msg, path=path) from e
    return parse_rule_document(
        text, default_id=_default_rule_id(path, root), source=path
    )


def collect_rule_documents(
    paths: Sequence[Path] = (),
    texts: Sequence[RuleText] = (),
) -> tuple[list[RuleDocument], list[LoadIssue]]:
    """Parse rule documents from files, directories and in-memory texts.

    Every document is attempted so that all problems surface in one pass.
    Registration orders are left at zero; the caller assigns them after
    merging.

    Args:
        paths: Rule files or directories, in precedence order (lowest first).
        texts: In-memory documents, after all paths.

    Returns:
        Tuple of (documents in source order, issues).
    """
    documents: list[RuleDocument] = []
    issues: list[LoadIssue] = []

    for path in paths:
        if path.is_dir():
            files = discover_rule_files(path)
            root = path
        elif path.is_file():
            files = [path]
            root = path.parent
        else:
            msg = f"rule source {path}: not found"
            issues.append(LoadIssue(msg, ConfigLoadError("not found", path=path)))
            continue

        for file in files:
            try:
                documents.append(_parse_rule_file(file, root))
            except (ConfigLoadError, PatternSyntaxError) as e:
                rule_id = _default_rule_id(file, root)
                issues.append(LoadIssue(f"rule {rule_id!r} ({file}): {e}", e))

    for rule_text in texts:
        try:
            documents.append(
                parse_rule_document(rule_text.text, default_id=rule_text.id)
            )
        except (ConfigLoadError, PatternSyntaxError) as e:
            issues.append(LoadIssue(f"rule {rule_text.id!r}: {e}", e))

    return documents, issues


def load_rule_directory(directory: Path) -> list[RuleDocument]:
    """Load every rule document under directory.

    Args:
        directory: Directory scanned recursively for ``*.md`` files.

    Returns:
        Documents in lexicographic relative path order, numbered from zero.

    Raises:
        LoadError: If any document is invalid.
    """
    documents, issues = collect_rule_documents([directory])
    if issues:
        raise load_error(issues)
    return [
        replace(document, registration_order=index)
        for index, document in enumerate(documents)
    ]
