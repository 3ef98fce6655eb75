from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from stencil.schema import (
    RenderResult,
    TemplateBundle,
    TemplateOption,
    TemplateValidationResult,
)


def test_render_result_rejects_negative_time() -> None:
    with pytest.raises(ValidationError):
        RenderResult(content="x", render_time_ms=-1.0)


def test_render_result_is_frozen() -> None:
    result = RenderResult(content="x", render_time_ms=0.5)
    assert result.cache_hit is False
    with pytest.raises(ValidationError):
        result.content = "y"


def test_bundle_ignores_unknown_manifest_fields(sample_bundle) -> None:
    sample_bundle["author"] = "someone"
    bundle = TemplateBundle.model_validate(sample_bundle)
    assert bundle.name == "Sample Bundle"
    assert [entry.path for entry in bundle.files][0] == "README.md"
    assert bundle.files[2].condition == "withTests"
    assert bundle.options[1].default is True


def test_option_type_is_restricted() -> None:
    with pytest.raises(ValidationError):
        TemplateOption(name="colour", type="colour", description="Pick one")


def test_validation_result_defaults_and_json() -> None:
    result = TemplateValidationResult(template_id="demo", is_valid=True)
    assert result.files.file_results == {}
    dumped = json.dumps(result.model_dump(mode="json"))
    assert TemplateValidationResult.model_validate_json(dumped) == result


def test_validation_result_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        TemplateValidationResult.model_validate({"template_id": "demo", "is_valid": True, "extra": 1})
