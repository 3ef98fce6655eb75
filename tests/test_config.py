from __future__ import annotations

import pytest

from stencil.config import RenderOptions, build_configuration, coerce_option_value
from stencil.errors import ConfigurationError
from stencil.schema import TemplateOption


def test_render_options_defaults():
    options = RenderOptions()
    assert options.enable_cache is False
    assert options.cache is None


def test_defaults_and_overrides(sample_bundle):
    configuration = build_configuration(sample_bundle["options"], {"projectName": "demo", "workers": "4"})
    assert configuration == {"projectName": "demo", "withTests": True, "workers": 4}


def test_required_option_without_value(sample_bundle):
    with pytest.raises(ConfigurationError):
        build_configuration(sample_bundle["options"], {})


def test_dotted_keys_create_nested_values():
    configuration = build_configuration(values={"user.role": "Admin", "user.name": "Bob", "name": "x"})
    assert configuration == {"user": {"role": "Admin", "name": "Bob"}, "name": "x"}


def test_conflicting_keys():
    with pytest.raises(ConfigurationError):
        build_configuration(values={"user": "Bob", "user.role": "Admin"})
    with pytest.raises(ConfigurationError):
        build_configuration(values={"user.role": "Admin", "user": "Bob"})


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ("Yes", True), ("1", True), ("off", False), ("no", False), (False, False)],
)
def test_boolean_coercion(raw, expected):
    option = TemplateOption(name="flag", type="boolean", description="Flag")
    assert coerce_option_value(option, raw) is expected


@pytest.mark.parametrize("raw, expected", [("3", 3), ("2.5", 2.5), (" 7 ", 7), (4, 4)])
def test_number_coercion(raw, expected):
    option = TemplateOption(name="count", type="number", description="Count")
    assert coerce_option_value(option, raw) == expected


def test_invalid_values():
    with pytest.raises(ConfigurationError):
        coerce_option_value(TemplateOption(name="flag", type="boolean", description="d"), "maybe")
    with pytest.raises(ConfigurationError):
        coerce_option_value(TemplateOption(name="count", type="number", description="d"), "many")
    select = TemplateOption(name="db", type="select", description="d", choices=["sqlite", "postgres"])
    assert coerce_option_value(select, "sqlite") == "sqlite"
    with pytest.raises(ConfigurationError):
        coerce_option_value(select, "mysql")
