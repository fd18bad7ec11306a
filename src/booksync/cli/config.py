"""Configuration utilities for the booksync CLI.

This module provides the persistent config file and resolves the effective
SyncConfig from command-line flags, the config file and device profiles, in
that order of precedence.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from booksync.cli.profiles import DEFAULT_PROFILE, get_profile
from booksync.core.config import ConfigError, SyncConfig
from booksync.sync.discovery import FILE_STREAM_BOUND
from booksync.sync.types import SourceSpec


def get_config_dir() -> Path:
    """Get the configuration directory for booksync.

    Returns:
        Path to ~/.booksync or equivalent.
    """
    return Path.home() / ".booksync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if not config_file.exists():
        return {}
    try:
        data = json.loads(config_file.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid config file {config_file}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"invalid config file {config_file}: expected an object")
    return data


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def normalize_extension(ext: str) -> str:
    """Add the leading dot to an extension if it is missing.

    Case is preserved: matching is case-sensitive.
    """
    ext = ext.strip()
    if not ext:
        raise ConfigError("empty file extension")
    return ext if ext.startswith(".") else f".{ext}"


def resolve_sync_config(
    profile: str | None = None,
    destination: Path | None = None,
    sources: tuple[Path, ...] | list[Path] = (),
    extensions: tuple[str, ...] | list[str] = (),
    dry_run: bool = False,
    max_workers: int | None = None,
    file_buffer: int = FILE_STREAM_BOUND,
) -> SyncConfig:
    """Build the SyncConfig for a run.

    Each setting comes from the flag if given, else the config file, else
    the profile.

    Args:
        profile: Device profile name.
        destination: Destination directory.
        sources: Source directories.
        extensions: Extensions to synchronize.
        dry_run: Report what would be copied without copying.
        max_workers: Copy concurrency limit.
        file_buffer: Bound of the discovered-file stream.

    Returns:
        The (not yet validated) configuration.

    Raises:
        ConfigError: If the config file or profile is invalid.
    """
    stored = load_config()
    selected = get_profile(profile or stored.get("profile") or DEFAULT_PROFILE)

    dest = destination or (
        Path(stored["destination"]) if stored.get("destination") else selected.destination
    )

    exts = tuple(normalize_extension(e) for e in (extensions or stored.get("extensions") or ()))
    source_dirs = [Path(s) for s in (sources or stored.get("sources") or ())]

    if source_dirs:
        specs = [
            SourceSpec.create(path.expanduser(), exts or selected.extensions)
            for path in source_dirs
        ]
    else:
        specs = [source.to_spec(exts or None) for source in selected.sources]

    return SyncConfig(
        sources=specs,
        destination=dest,
        dry_run=dry_run,
        max_workers=max_workers,
        file_buffer=file_buffer,
        destination_hint=selected.destination_hint,
    )
