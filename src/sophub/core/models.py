"""SOP data models: in-memory step model, parse result, and YAML intermediate schema"""

from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, Field, field_validator


def new_id() -> str:
    """Return a fresh random identifier for steps and images."""
    return str(uuid4())


def _text(value: Any) -> str:
    """Coerce a decoded YAML scalar to str; null becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ValueError(f"expected a string, got {type(value).__name__}")
    return str(value)


class StepType(str, Enum):
    """Restrict steps to a plain instruction or a branch point"""
    standard = "standard"
    decision = "decision"

    @classmethod
    def coerce(cls, value: Any) -> "StepType":
        """Map any value to a StepType; anything unrecognized is standard."""
        if isinstance(value, StepType):
            return value
        return cls.decision if value == cls.decision.value else cls.standard


class StepImage(BaseModel):
    """An image attached to a step in the editor. Never parsed or exported."""
    id: str = Field(default_factory=new_id)
    data: str                       # base64 data URL
    caption: str = ""


class Step(BaseModel):
    """One titled, ordered unit of an SOP."""
    id: str = Field(default_factory=new_id)
    title: str = ""
    content: str = ""
    order: int = Field(default=0, ge=0)
    type: StepType = StepType.standard
    images: list[StepImage] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> StepType:
        return StepType.coerce(v)

    @field_validator("title", "content", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _text(v)


class ParsedSOP(BaseModel):
    """Parser output and editor working copy: header text plus ordered steps."""
    title: str = ""
    objectives: str = ""
    logins_prerequisites: str = Field(
        default="",
        validation_alias=AliasChoices("logins_prerequisites", "prerequisites"),
    )
    steps: list[Step] = Field(default_factory=list)

    @field_validator("title", "objectives", "logins_prerequisites", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _text(v)


class ExportableSOP(ParsedSOP):
    """A ParsedSOP together with its associated tag names, in association order."""
    tags: list[str] = Field(default_factory=list)


# --- YAML intermediate schema ---

class YamlStep(BaseModel):
    """A step mapping as it appears under `steps:` in a YAML document."""
    title: str = ""
    content: str = ""
    type: StepType = StepType.standard

    @field_validator("title", "content", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> StepType:
        return StepType.coerce(v)


class YamlSOP(BaseModel):
    """Top-level YAML document. title and steps are required keys."""
    title: str
    steps: list[YamlStep]
    objectives: str = ""
    prerequisites: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("title", "objectives", "prerequisites", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("steps", mode="before")
    @classmethod
    def _null_steps(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if isinstance(v, list):
            return [t.strip() for t in map(_text, v) if t.strip()]
        return v
