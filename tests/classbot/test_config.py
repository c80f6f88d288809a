"""Tests for config layering, validation and loading."""

from __future__ import annotations

import base64
import copy
from unittest.mock import AsyncMock

import httpx
import pytest
import yaml

from classbot.config import ConfigError
from classbot.config.defaults import DEFAULT_CONFIG
from classbot.config.loader import ConfigLoader, merge_config, parse_config_yaml, validate_config
from classbot.config.schema import is_component_enabled

# ── merge_config ──────────────────────────────────────────────────────────


class TestMergeConfig:
    def test_nested_override(self):
        base = {"submission": {"branch": "main", "authors_allow": ["a"]}}
        result = merge_config(base, {"submission": {"branch": "dev"}})
        assert result == {"submission": {"branch": "dev", "authors_allow": ["a"]}}

    def test_lists_concatenate(self):
        base = {"submission": {"authors_allow": ["a"]}}
        result = merge_config(base, {"submission": {"authors_allow": ["b"]}})
        assert result["submission"]["authors_allow"] == ["a", "b"]

    def test_inputs_untouched(self):
        base = {"submission": {"authors_allow": ["a"]}, "watchdog": {"validate_files": False}}
        override = {"submission": {"authors_allow": ["b"]}, "watchdog": {"validate_files": True}}
        base_before = copy.deepcopy(base)
        override_before = copy.deepcopy(override)

        result = merge_config(base, override)
        result["submission"]["authors_allow"].append("c")

        assert base == base_before
        assert override == override_before

    def test_defaults_not_mutated(self):
        before = copy.deepcopy(dict(DEFAULT_CONFIG))
        merge_config(DEFAULT_CONFIG, {"submission": {"authors_allow": ["ta"]}})
        assert dict(DEFAULT_CONFIG) == before

    def test_component_absent_from_base_dropped(self):
        result = merge_config({"badges": {}}, {"badges": {"branch": "b"}, "autograde": {}})
        assert result == {"badges": {"branch": "b"}}

    def test_order_matters(self):
        a = merge_config({"submission": {"branch": "x"}}, {"submission": {"branch": "y"}})
        b = merge_config({"submission": {"branch": "y"}}, {"submission": {"branch": "x"}})
        assert a["submission"]["branch"] == "y"
        assert b["submission"]["branch"] == "x"


# ── validation ────────────────────────────────────────────────────────────


class TestValidateConfig:
    def test_defaults_valid(self):
        config = validate_config(DEFAULT_CONFIG)
        assert config.submission.branch == "main"
        assert config.watchdog.issue.label == "classbot"
        assert config.watchdog.validate_files is False
        assert config.autograde is None
        assert is_component_enabled(config.gradelog)

    def test_watchdog_requires_issue(self):
        with pytest.raises(ConfigError, match="issue"):
            validate_config({"watchdog": {"validate_files": True}})

    def test_blank_template_rejected(self):
        issue = {"label": "l", "title": "t", "template": "   "}
        with pytest.raises(ConfigError, match="template"):
            validate_config({"watchdog": {"issue": issue}})

    def test_broken_template_rejected(self):
        issue = {"label": "l", "title": "t", "template": "{{ description "}
        with pytest.raises(ConfigError, match="template"):
            validate_config({"watchdog": {"issue": issue}})

    def test_mustache_template_accepted(self):
        template = "Hi {{#assignees}}@{{.}} {{/assignees}}\n{{{description}}}"
        config = validate_config(
            merge_config(DEFAULT_CONFIG, {"watchdog": {"issue": {"template": template}}})
        )
        assert config.watchdog.issue.template == template

    def test_unclosed_section_rejected(self):
        issue = {"label": "l", "title": "t", "template": "{{#assignees}}@{{.}}"}
        with pytest.raises(ConfigError, match="template"):
            validate_config({"watchdog": {"issue": issue}})

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigError):
            validate_config({"badges": {"colour": "red"}})

    def test_disabled_component(self):
        config = validate_config({"badges": {"disabled": True}})
        assert config.badges is not None
        assert not is_component_enabled(config.badges)
        assert not is_component_enabled(None)


class TestParseConfigYaml:
    def test_empty_document(self):
        assert parse_config_yaml("", "x.yml") == {}

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="mapping"):
            parse_config_yaml("- a\n- b\n", "x.yml")

    def test_invalid_yaml(self):
        with pytest.raises(ConfigError, match="invalid YAML"):
            parse_config_yaml("a: [", "x.yml")


# ── ConfigLoader ──────────────────────────────────────────────────────────


def _content(data: dict) -> dict:
    return {"content": base64.b64encode(yaml.safe_dump(data).encode()).decode()}


def _not_found() -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.github.com/x")
    return httpx.HTTPStatusError(
        "not found", request=request, response=httpx.Response(404, request=request)
    )


def _client(files: dict[str, dict]) -> AsyncMock:
    client = AsyncMock()

    async def get(path, params=None):
        if path in files:
            return _content(files[path])
        raise _not_found()

    client.get.side_effect = get
    return client


class TestConfigLoader:
    async def test_defaults_only(self):
        config = await ConfigLoader(_client({})).load("cs101", "hw1-alice")
        assert config == validate_config(DEFAULT_CONFIG)

    async def test_layers_applied_in_order(self):
        client = _client(
            {
                "/repos/cs101/.github/contents/.github/classbot.yml": {
                    "submission": {"branch": "org", "authors_allow": ["ta"]},
                    "watchdog": {"validate_files": True},
                },
                "/repos/cs101/.github/contents/.github/classbot-hw1.yml": {
                    "submission": {"branch": "assignment"},
                    "badges": {"disabled": True},
                },
            }
        )
        config = await ConfigLoader(client).load("cs101", "hw1-alice")

        assert config.submission.branch == "assignment"
        assert config.submission.authors_allow[-1] == "ta"
        assert "github-classroom[bot]" in config.submission.authors_allow
        assert config.watchdog.validate_files is True
        assert not is_component_enabled(config.badges)

    async def test_layer_cannot_add_component(self):
        client = _client(
            {"/repos/cs101/.github/contents/.github/classbot.yml": {"autograde": {}}}
        )
        config = await ConfigLoader(client).load("cs101", "hw1-alice")
        assert config.autograde is None

    async def test_invalid_layer(self):
        client = _client(
            {"/repos/cs101/.github/contents/.github/classbot.yml": {"badges": {"bogus": 1}}}
        )
        with pytest.raises(ConfigError):
            await ConfigLoader(client).load("cs101", "hw1-alice")

    async def test_other_http_errors_propagate(self):
        client = AsyncMock()
        request = httpx.Request("GET", "https://api.github.com/x")
        client.get.side_effect = httpx.HTTPStatusError(
            "boom", request=request, response=httpx.Response(500, request=request)
        )
        with pytest.raises(httpx.HTTPStatusError):
            await ConfigLoader(client).load("cs101", "hw1-alice")
