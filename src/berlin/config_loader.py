"""Load BuildConfig and site metadata from berlin.toml / berlin.yaml.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from berlin._errors import ConfigError
from berlin.config import BuildConfig, ProfilesConfig, SiteConfig, SiteMetadata

CONFIG_NAMES = ("berlin.toml", "berlin.yaml", "berlin.yml")

# [berlin] keys that map onto BuildConfig fields
_BUILD_KEYS = frozenset(
    f.name for f in fields(BuildConfig) if f.name not in ("root", "config_file")
)


def find_config_file(root: Path) -> Path | None:
    """Return the first config file present in *root*, if any."""
    for name in CONFIG_NAMES:
        path = root / name
        if path.is_file():
            return path
    return None


def load_config(
    root: Path | str,
    config_path: Path | str | None = None,
    **overrides: Any,
) -> BuildConfig:
    """Load BuildConfig for the site at *root*.

    Uses *config_path* when given, else looks for berlin.toml, berlin.yaml
    or berlin.yml in *root*.  The ``[site]``, ``[profiles]`` and
    ``[[tasks]]`` sections are validated here so a broken file fails the
    run before any task executes.  Overrides whose value is None are
    ignored; the rest take precedence over the file.

    Raises:
        ConfigError: If the explicit path is missing or any section is invalid.

    """
    root = Path(root).resolve()
    if config_path is not None:
        config_file: Path | None = Path(config_path)
        if not config_file.is_absolute():
            config_file = Path.cwd() / config_file
        if not config_file.is_file():
            msg = f"Config file not found: {config_file}"
            raise ConfigError(msg)
    else:
        config_file = find_config_file(root)

    document = read_config_document(config_file) if config_file is not None else {}
    _site_metadata_from(document, config_file)
    task_entries(document, config_file)

    merged = {**_build_section(document, config_file)}
    merged.update({k: v for k, v in overrides.items() if v is not None})
    if "output" in merged and not isinstance(merged["output"], Path):
        merged["output"] = Path(str(merged["output"]))
    return BuildConfig(root=root, config_file=config_file, **merged)


def read_config_document(path: Path) -> dict[str, Any]:
    """Parse a TOML or YAML config file into a mapping.

    Raises:
        ConfigError: If the file cannot be read, is malformed, or is not a table.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Unable to read config file {path}: {exc}"
        raise ConfigError(msg) from exc

    try:
        if path.suffix == ".toml":
            data: Any = tomllib.loads(text)
        else:
            data = yaml.safe_load(text)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        msg = f"Invalid config file {path}: {exc}"
        raise ConfigError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file {path} must contain a table, got {type(data).__name__}"
        raise ConfigError(msg)
    return data


def read_site_metadata(config_file: Path | None) -> SiteMetadata:
    """Read the ``[site]`` and ``[profiles]`` tables of *config_file*.

    No config file means empty metadata.

    Raises:
        ConfigError: On an unreadable file or unknown keys.

    """
    if config_file is None:
        return SiteMetadata()
    return _site_metadata_from(read_config_document(config_file), config_file)


def read_task_entries(config_file: Path | None) -> list[dict[str, Any]]:
    """Return the ``[[tasks]]`` tables of *config_file* (empty if none)."""
    if config_file is None:
        return []
    return task_entries(read_config_document(config_file), config_file)


def task_entries(document: dict[str, Any], source: Path | None) -> list[dict[str, Any]]:
    tasks = document.get("tasks", [])
    if not isinstance(tasks, list) or not all(isinstance(t, dict) for t in tasks):
        msg = f"'tasks' in {source} must be an array of tables"
        raise ConfigError(msg)
    return tasks


def initialize_context(config_file: Path | None) -> dict[str, Any]:
    """Seed a template context from the site metadata.

    Re-reads the file on every call so metadata edits show up on the next
    task run in watch mode.
    """
    meta = read_site_metadata(config_file)
    return {
        "title": meta.site.title,
        "author": meta.site.author,
        "description": meta.site.description,
        "config_site_url": meta.site.url,
        "linkedin": meta.profiles.linkedin,
        "github": meta.profiles.github,
        "twitter": meta.profiles.twitter,
        "og_image_path": "",
        "me": meta.profiles.linkedin,
    }


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _table(document: dict[str, Any], name: str, source: Path | None) -> dict[str, Any]:
    table = document.get(name, {})
    if not isinstance(table, dict):
        msg = f"[{name}] in {source} must be a table"
        raise ConfigError(msg)
    return table


def _strict[T](cls: type[T], table: dict[str, Any], name: str, source: Path | None) -> T:
    allowed = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(set(table) - allowed)
    if unknown:
        msg = f"Unknown key(s) in [{name}] of {source}: {', '.join(unknown)}"
        raise ConfigError(msg)
    values = {k: None if v is None else str(v) for k, v in table.items()}
    return cls(**values)


def _site_metadata_from(document: dict[str, Any], source: Path | None) -> SiteMetadata:
    return SiteMetadata(
        site=_strict(SiteConfig, _table(document, "site", source), "site", source),
        profiles=_strict(ProfilesConfig, _table(document, "profiles", source), "profiles", source),
    )


def _build_section(document: dict[str, Any], source: Path | None) -> dict[str, Any]:
    section = _table(document, "berlin", source)
    unknown = sorted(set(section) - _BUILD_KEYS)
    if unknown:
        msg = f"Unknown key(s) in [berlin] of {source}: {', '.join(unknown)}"
        raise ConfigError(msg)
    for key in ("port", "debounce_ms"):
        if key in section and not isinstance(section[key], int):
            msg = f"[berlin].{key} in {source} must be an integer"
            raise ConfigError(msg)
    return dict(section)
