"""Rule document header model.

The header is the YAML frontmatter at the top of a rule document. A document
without ``paths`` (or with ``alwaysApply: true``) applies unconditionally.
"""

from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class RuleHeader(BaseModel):
    """Typed view of a rule document's frontmatter."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str | None = Field(default=None, description="Explicit document ID.")
    description: str | None = Field(
        default=None, description="Description of the rule document."
    )
    paths: tuple[str, ...] | None = Field(
        default=None,
        description="Glob patterns selecting the files this document applies to.",
    )
    always_apply: bool = Field(
        default=False, description="Apply regardless of the edited path."
    )

    @field_validator("paths", mode="before")
    @classmethod
    def _split_paths(cls, value: object) -> object:
        # "paths: src/**/*.ts, lib/**/*.ts" is accepted as well as a YAML list
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(","))
        return value

    @field_validator("paths")
    @classmethod
    def _require_patterns(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        if not value or any(not pattern.strip() for pattern in value):
            msg = "paths must contain at least one pattern and no empty entries"
            raise ValueError(msg)
        return tuple(pattern.strip() for pattern in value)

    @model_validator(mode="after")
    def _check_scope(self) -> Self:
        if self.always_apply and self.paths is not None:
            msg = "alwaysApply cannot be combined with paths"
            raise ValueError(msg)
        return self

    @property
    def is_common(self) -> bool:
        """Whether the document applies unconditionally."""
        return self.paths is None
