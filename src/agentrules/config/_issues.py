"""Load issues collected while reading configuration sources."""

from dataclasses import dataclass

from agentrules.exceptions import LoadError


@dataclass(frozen=True, slots=True)
class LoadIssue:
    """One problem found during a load.

    Attributes:
        message: Human-readable description naming the offending item.
        error: The exception behind the problem.
    """

    message: str
    error: Exception

    def __str__(self) -> str:
        return self.message


def load_error(issues: list[LoadIssue]) -> LoadError:
    """Build the LoadError that rejects a load with the given issues."""
    return LoadError(
        [issue.message for issue in issues],
        errors=[issue.error for issue in issues],
    )
