"""
Load prompt templates from the bundled prompts.yaml file.

Prompts are defined in src/stylemix/prompts.yaml and loaded once per process.
Add new prompt keys there and access them via get_prompt() or the typed getters.
"""

import importlib.resources
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from stylemix.utils.exceptions import ConfigurationError

# Module-level cache for parsed prompts
_prompts_data: dict[str, Any] | None = None


class SynthesisPrompts(BaseModel):
    """Schema for the prompt synthesis section."""

    system_instruction: str = Field(..., min_length=1)
    enhancement_instruction: str = Field(..., min_length=1)
    subject_label: str = Field(..., min_length=1)
    style_label: str = Field(..., min_length=1)
    goal_template: str = Field(..., description="Must contain {goal}")
    enhancement_template: str = Field(
        ..., description="Must contain {previous_prompt} and {edit_suggestion}"
    )

    @field_validator("goal_template")
    @classmethod
    def _goal_placeholder(cls, value: str) -> str:
        if "{goal}" not in value:
            raise ValueError("goal_template must contain the {goal} placeholder")
        return value

    @field_validator("enhancement_template")
    @classmethod
    def _enhancement_placeholders(cls, value: str) -> str:
        for placeholder in ("{previous_prompt}", "{edit_suggestion}"):
            if placeholder not in value:
                raise ValueError(f"enhancement_template must contain the {placeholder} placeholder")
        return value


class ValidationPrompts(BaseModel):
    """Schema for the API key probe."""

    probe: str = Field(..., min_length=1)


class PromptsSchema(BaseModel):
    """Schema for prompts.yaml."""

    model_config = {"extra": "allow"}

    synthesis: SynthesisPrompts
    validation: ValidationPrompts


def _load_prompts() -> dict[str, Any]:
    """Load and parse prompts.yaml from the package. Cached after first call.

    Raises:
        ConfigurationError: If YAML is missing, malformed, or fails validation.
    """
    global _prompts_data
    if _prompts_data is not None:
        return _prompts_data

    try:
        with (
            importlib.resources.files("stylemix")
            .joinpath("prompts.yaml")
            .open(encoding="utf-8") as f
        ):
            raw = f.read()
    except FileNotFoundError as e:
        raise ConfigurationError(
            "prompts.yaml not found. This file is required and should be bundled with the package."
        ) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse prompts.yaml: {e}. Check YAML syntax and formatting."
        ) from e

    if data is None:
        raise ConfigurationError(
            "prompts.yaml is empty. Expected 'synthesis' and 'validation' sections."
        )

    try:
        PromptsSchema(**data)
    except ValidationError as e:
        errors = "\n".join(
            f"  - {'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid prompts.yaml structure:\n{errors}") from e

    _prompts_data = data
    return _prompts_data


def get_prompt(key: str, subkey: str | None = None) -> str | None:
    """
    Get a prompt string from prompts.yaml.

    Args:
        key: Top-level key (e.g. "synthesis").
        subkey: Optional subkey (e.g. "subject_label") for nested value.

    Returns:
        The prompt string, or None if not found.
    """
    data = _load_prompts()
    value = data.get(key)
    if value is None:
        return None
    if subkey is not None:
        value = value.get(subkey) if isinstance(value, dict) else None
    return value if isinstance(value, str) else None


def get_synthesis_prompts() -> SynthesisPrompts:
    """Return the validated synthesis section (instructions, labels, templates)."""
    return SynthesisPrompts(**_load_prompts()["synthesis"])


def get_validation_probe() -> str:
    """Return the text sent when probing an API key."""
    return ValidationPrompts(**_load_prompts()["validation"]).probe
