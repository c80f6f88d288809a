"""CLI entry point: classbot.

Subcommands:
    classbot serve --port 3000           # Run the webhook receiver / ledger API
    classbot config OWNER REPO           # Print the effective merged config
    classbot check-manifest PATH...      # Test paths against a manifest
"""

from __future__ import annotations

import asyncio
import sys

import click
import yaml

from classbot.config.defaults import DEFAULT_CONFIG
from classbot.config.loader import ConfigError, ConfigLoader, validate_config
from classbot.core.github_client import GitHubClient
from classbot.engines.watchdog.manifest import ManifestMatcher, resolve_manifest


@click.group()
def main() -> None:
    """Classbot: GitHub Classroom automation bot."""


@main.command()
@click.option("--host", default="0.0.0.0", help="Bind address")
@click.option("--port", default=3000, type=int, help="Bind port")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes (development)")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP server."""
    import uvicorn

    uvicorn.run(
        "classbot.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


async def _load_config(owner: str, repo: str) -> dict:
    async with GitHubClient() as client:
        config = await ConfigLoader(client).load(owner, repo)
    return config.model_dump(exclude_none=True)


@main.command("config")
@click.argument("owner")
@click.argument("repo")
def show_config(owner: str, repo: str) -> None:
    """Print the configuration classbot would use for OWNER/REPO."""
    try:
        config = asyncio.run(_load_config(owner, repo))
    except ConfigError as exc:
        click.echo(f"Invalid configuration: {exc}", err=True)
        sys.exit(1)
    click.echo(yaml.safe_dump(config, sort_keys=False))


@main.command("check-manifest")
@click.argument("paths", nargs=-1, required=True)
@click.option("-b", "--branch", default=None, help="Branch whose manifest applies")
@click.option(
    "-m",
    "--manifest",
    "manifest_file",
    type=click.File("r"),
    default=None,
    help="YAML file with a 'manifest' key (default: built-in manifest)",
)
def check_manifest(paths: tuple[str, ...], branch: str | None, manifest_file) -> None:
    """Report which PATHS fall outside the submission manifest.

    Exits with status 1 if any path is outside.
    """
    if manifest_file is not None:
        raw = yaml.safe_load(manifest_file) or {}
        manifest = raw.get("manifest", [])
    else:
        submission = validate_config(DEFAULT_CONFIG).submission
        manifest = submission.manifest
        branch = branch or submission.branch

    patterns = resolve_manifest(manifest, branch)
    outside = ManifestMatcher(patterns).outside(paths)
    for path in paths:
        click.echo(f"{'outside' if path in outside else 'ok':8} {path}")
    if outside:
        sys.exit(1)


if __name__ == "__main__":
    main()
