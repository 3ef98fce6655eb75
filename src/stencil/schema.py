"""Data models exchanged with stencil hosts."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

OptionType = Literal["string", "boolean", "number", "select"]
OptionValue = Union[bool, int, float, str]


class RenderResult(BaseModel):
    """Outcome of a single render call."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    content: str = Field(..., description="Rendered text.")
    render_time_ms: float = Field(..., ge=0, description="Wall clock time spent rendering, in milliseconds.")
    cache_hit: bool = Field(False, description="Whether the content was served from a render cache.")


class TemplateOption(BaseModel):
    """A user-facing parameter declared by a bundle."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(..., description="Configuration key the option populates.")
    type: OptionType = Field(..., description="Value type of the option.")
    description: str = Field(..., description="Prompt or help text for the option.")
    default: Optional[OptionValue] = Field(None, description="Value used when none is supplied.")
    choices: Optional[List[str]] = Field(None, description="Allowed values for select options.")
    required: bool = Field(False, description="Whether a value must be supplied.")


class TemplateFile(BaseModel):
    """A file template belonging to a bundle."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    path: str = Field(..., description="Destination path, itself a template.")
    content: str = Field(..., description="Template source for the file body.")
    overwrite: Optional[bool] = Field(None, description="Whether an existing file may be replaced.")
    condition: Optional[str] = Field(None, description="Guard expression deciding whether the file is generated.")


class TemplateBundle(BaseModel):
    """A named set of file templates plus metadata."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    description: str
    version: str
    files: List[TemplateFile]
    options: List[TemplateOption] = Field(default_factory=list)


class CheckResult(BaseModel):
    """Outcome of one validation sub-check."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class FileCheckResult(CheckResult):
    """File sub-check outcome including a per-path breakdown."""

    file_results: Dict[str, CheckResult] = Field(default_factory=dict)


class TemplateValidationResult(BaseModel):
    """Aggregated validation outcome for a bundle."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    template_id: str
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    metadata: CheckResult = Field(default_factory=CheckResult)
    syntax: CheckResult = Field(default_factory=CheckResult)
    configuration: CheckResult = Field(default_factory=CheckResult)
    files: FileCheckResult = Field(default_factory=FileCheckResult)


class ValidationSummary(BaseModel):
    """Validation findings grouped for presentation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    critical: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class RenderedFile(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    content: str
    overwrite: Optional[bool] = None
    cache_hit: bool = False


class SkippedFile(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    condition: str


class BundleRenderResult(BaseModel):
    """Rendered files of a bundle, in bundle order."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    files: List[RenderedFile] = Field(default_factory=list)
    skipped: List[SkippedFile] = Field(default_factory=list)


__all__ = [
    "BundleRenderResult",
    "CheckResult",
    "FileCheckResult",
    "OptionType",
    "OptionValue",
    "RenderResult",
    "RenderedFile",
    "SkippedFile",
    "TemplateBundle",
    "TemplateFile",
    "TemplateOption",
    "TemplateValidationResult",
    "ValidationSummary",
]
