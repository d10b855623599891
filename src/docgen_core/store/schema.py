"""Pydantic schema of the on-disk template file format."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

IDENTITY_KEYS = ("platform", "documentType", "techStack")


class SectionModel(BaseModel):
    """One entry of ``sections``."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    body: str


class VariableModel(BaseModel):
    """One entry of ``variables``."""

    model_config = ConfigDict(extra="forbid")

    required: bool | None = None
    default: Any = None
    description: str | None = None


class TemplateFileModel(BaseModel):
    """Top-level template file.

    Resolvable templates need the identity keys; fragment files
    (``fragment: <name>``) may omit them.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    platform: str | None = Field(default=None, min_length=1)
    document_type: str | None = Field(default=None, alias="documentType", min_length=1)
    tech_stack: str | None = Field(default=None, alias="techStack", min_length=1)
    version: str
    sections: list[SectionModel]
    variables: dict[str, VariableModel]
    base_refs: list[str] = Field(default_factory=list, alias="baseRefs")
    fragment: str | None = Field(default=None, min_length=1)
    description: str | None = None

    @field_validator("sections")
    @classmethod
    def _unique_section_names(cls, sections: list[SectionModel]) -> list[SectionModel]:
        seen: set[str] = set()
        for section in sections:
            if section.name in seen:
                raise ValueError(f"duplicate section name '{section.name}'")
            seen.add(section.name)
        return sections

    @model_validator(mode="after")
    def _identity_keys(self) -> "TemplateFileModel":
        if self.fragment is not None:
            return self
        values = (self.platform, self.document_type, self.tech_stack)
        missing = [name for name, value in zip(IDENTITY_KEYS, values) if value is None]
        if missing:
            raise ValueError(f"missing required key(s): {', '.join(missing)}")
        return self


def normalize_document(data: dict[str, Any]) -> dict[str, Any]:
    """Expand the shorthand forms allowed in template files.

    Handles:
    - ``sections: {name: body}`` → ``[{name, body}]``
    - ``variables: {name: value}`` → ``{name: {default: value}}``
    - numeric ``version: 1.0`` → ``"1.0"``
    - ``sections:`` / ``variables:`` left empty → empty collections

    Args:
        data: Raw mapping loaded from YAML

    Returns:
        New mapping in the canonical form
    """
    result = dict(data)

    version = result.get("version")
    if isinstance(version, (int, float)) and not isinstance(version, bool):
        result["version"] = str(version)

    if "sections" in result:
        sections = result["sections"]
        if sections is None:
            result["sections"] = []
        elif isinstance(sections, dict):
            result["sections"] = [{"name": str(k), "body": v} for k, v in sections.items()]

    if "variables" in result:
        variables = result["variables"]
        if variables is None:
            result["variables"] = {}
        elif isinstance(variables, dict):
            result["variables"] = {
                str(name): spec if _is_full_spec(spec) else {"default": spec}
                for name, spec in variables.items()
            }

    if result.get("baseRefs") is None and "baseRefs" in result:
        result["baseRefs"] = []

    return result


def _is_full_spec(value: Any) -> bool:
    """A mapping made only of schema attributes is a full spec, anything else a default."""
    return isinstance(value, dict) and set(value) <= set(VariableModel.model_fields)
