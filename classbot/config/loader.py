"""Layered config loading: built-in defaults <- org classbot.yml <- assignment yml."""

from __future__ import annotations

import base64
import copy
from collections.abc import Mapping
from typing import Any

import httpx
import pydantic
import structlog
import yaml

from classbot.config.defaults import DEFAULT_CONFIG
from classbot.config.schema import ClassbotConfig
from classbot.core.github import parse_assignment_repo
from classbot.core.github_client import GitHubClient, is_not_found

log = structlog.get_logger("classbot.config")

# Config files live in the org-wide ``.github`` repository, like other
# GitHub App settings.
CONFIG_REPO = ".github"
CONFIG_DIR = ".github"
GLOBAL_CONFIG_FILE = "classbot.yml"

# Sections that only exist when the base layer has them.
COMPONENT_SECTIONS = ("watchdog", "autograde", "badges", "gradelog", "workflows")


class ConfigError(Exception):
    """Configuration is missing, unparsable or fails validation."""


def _deep_merge(base: Any, override: Any) -> Any:
    if isinstance(base, Mapping) and isinstance(override, Mapping):
        merged = {key: copy.deepcopy(value) for key, value in base.items()}
        for key, value in override.items():
            merged[key] = _deep_merge(base[key], value) if key in base else copy.deepcopy(value)
        return merged
    if isinstance(base, list) and isinstance(override, list):
        return copy.deepcopy(base) + copy.deepcopy(override)
    return copy.deepcopy(override)


def merge_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return *override* merged over *base*; neither input is modified.

    Mappings merge recursively, lists concatenate and everything else is
    replaced.  A component section missing from *base* is dropped from the
    result even if *override* provides it, so an override can tune a
    component but never switch one on that a lower layer left out.
    """
    result = _deep_merge(base, override)
    for section in COMPONENT_SECTIONS:
        if section not in base:
            result.pop(section, None)
    return result


def validate_config(raw: Mapping[str, Any]) -> ClassbotConfig:
    """Validate a merged raw config, raising :class:`ConfigError` on failure."""
    try:
        return ClassbotConfig.model_validate(dict(raw))
    except pydantic.ValidationError as exc:
        raise ConfigError(f"invalid classbot configuration: {exc}") from exc


def parse_config_yaml(text: str, source: str) -> dict[str, Any]:
    """Parse one YAML layer; an empty document is an empty override."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{source}: invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: top level must be a mapping")
    return data


class ConfigLoader:
    """Loads and validates the effective config for a repository."""

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def _fetch_layer(self, owner: str, filename: str) -> dict[str, Any] | None:
        path = f"{CONFIG_DIR}/{filename}"
        try:
            content = await self._client.get(f"/repos/{owner}/{CONFIG_REPO}/contents/{path}")
        except httpx.HTTPStatusError as exc:
            if is_not_found(exc):
                return None
            raise
        text = base64.b64decode(content.get("content", "")).decode("utf-8")
        log.debug("config.layer_loaded", owner=owner, path=path)
        return parse_config_yaml(text, f"{owner}/{CONFIG_REPO}:{path}")

    async def load(self, owner: str, repo: str) -> ClassbotConfig:
        """Return the merged, validated config for ``owner/repo``.

        Raises :class:`ConfigError` if the result is invalid.
        """
        raw: dict[str, Any] = dict(DEFAULT_CONFIG)

        org_layer = await self._fetch_layer(owner, GLOBAL_CONFIG_FILE)
        if org_layer is not None:
            raw = merge_config(raw, org_layer)

        parsed = parse_assignment_repo(repo)
        if parsed is not None and parsed.assignment:
            assignment_layer = await self._fetch_layer(
                owner, f"classbot-{parsed.assignment}.yml"
            )
            if assignment_layer is not None:
                raw = merge_config(raw, assignment_layer)

        return validate_config(raw)
