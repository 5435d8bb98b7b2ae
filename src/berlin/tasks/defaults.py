"""The default task table and the ``[[tasks]]`` config format.

Config tasks replace the default table entirely.  Each ``[[tasks]]`` table
has a ``kind``:

.. code-block:: toml

    [[tasks]]
    kind = "render"
    name = "index"
    template = "index.html"
    output = "index.html"
    inputs = [
        { glob = "content/notes/*.md", aggregate = "sort_by_date_published" },
        { paths = ["data/feed.csv"], aggregate = "feed_aggregate_all" },
    ]
    params = [
        { key = "articles", handler = "articles_by_key", args = ["index"] },
        { static = "empty_slides" },
    ]

    [[tasks]]
    kind = "css"
    input = "*.css"
    output = "{file}"

    [[tasks]]
    kind = "mount"
    output = "static/{file}"

Inputs are ``{paths = [...]}``, ``{glob = "..."}`` or ``{inputs = [...]}``,
each with an optional (required for ``inputs``) ``aggregate`` name.
Params are ``{static = name}``, ``{key, value = name}``,
``{values = {key = name, ...}}``, ``{custom = name}``, ``{bind = name}``
or ``{key, handler = name, args = [...]}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from berlin._errors import ConfigError
from berlin.tasks.model import (
    AggregationInput,
    BindParam,
    CssTask,
    CustomParam,
    GlobInput,
    HandlerParam,
    Input,
    MountTask,
    MultipleParam,
    Param,
    PathsInput,
    RenderTask,
    SingleParam,
    StaticParam,
    Task,
)

if TYPE_CHECKING:
    from berlin.config import BuildConfig
    from berlin.tasks.registry import FunctionRegistry


def default_tasks(config: BuildConfig | None = None) -> list[Task]:
    """The site's built-in task table, in execution order."""
    content_dir = config.content_dir if config is not None else "content"
    data_dir = config.data_dir if config is not None else "data"
    notes = GlobInput(f"{content_dir}/notes/*.md")
    org_notes = GlobInput(f"{content_dir}/notes/*.org")
    feed = PathsInput((f"{data_dir}/feed.csv",))

    return [
        RenderTask(
            "notes_index",
            "notes.html",
            "notes.html",
            inputs=(AggregationInput((notes, org_notes), "sort_by_date_published"),),
            params=(HandlerParam("articles", "articles_by_key", ("notes_index",)),),
        ),
        RenderTask(
            "index",
            "index.html",
            "index.html",
            inputs=(
                AggregationInput((notes, org_notes), "sort_by_date_published"),
                AggregationInput((feed,), "feed_aggregate_all"),
            ),
            params=(
                HandlerParam("articles", "articles_by_key", ("index",)),
                HandlerParam("feed", "feed_by_key", ("feed",)),
                HandlerParam("tags", "compute_tags"),
                StaticParam("empty_slides"),
            ),
        ),
        RenderTask(
            "tags",
            "tags/base.html",
            "tags/[slug].html",
            inputs=(AggregationInput((notes, org_notes, feed), "tags_index"),),
            params=(BindParam("tag_context"),),
        ),
        RenderTask(
            "notes",
            "notes/base.html",
            "notes/[slug].html",
            inputs=(notes, org_notes),
            params=(BindParam("front_matter_context"),),
        ),
        RenderTask("about", "about.html", "about.html"),
        RenderTask("garage", "garage.html", "garage.html"),
        CssTask("*.css", "{file}"),
        MountTask("static/{file}"),
    ]


# ---------------------------------------------------------------------------
# Config tasks
# ---------------------------------------------------------------------------


def tasks_from_config(
    entries: list[dict[str, Any]],
    registry: FunctionRegistry | None = None,
) -> list[Task]:
    """Build a task table from ``[[tasks]]`` entries.

    When *registry* is given every referenced function name is checked.

    Raises:
        ConfigError: On a malformed entry or an unknown function name.

    """
    tasks: list[Task] = []
    for index, entry in enumerate(entries):
        try:
            tasks.append(_task(entry))
        except ConfigError as exc:
            msg = f"tasks[{index}]: {exc}"
            raise ConfigError(msg) from exc
    if registry is not None:
        registry.validate(tasks)
    return tasks


def _task(entry: dict[str, Any]) -> Task:
    kind = entry.get("kind", "render")
    match kind:
        case "render":
            _check_keys(entry, {"kind", "name", "template", "output", "inputs", "params"})
            return RenderTask(
                _require_str(entry, "name"),
                _require_str(entry, "template"),
                _require_str(entry, "output"),
                inputs=tuple(_input(i) for i in _list(entry, "inputs")),
                params=tuple(_param(p) for p in _list(entry, "params")),
            )
        case "mount":
            _check_keys(entry, {"kind", "name", "output"})
            return MountTask(_require_str(entry, "output"), name=entry.get("name", "static"))
        case "css":
            _check_keys(entry, {"kind", "name", "input", "output"})
            return CssTask(
                _require_str(entry, "input"),
                _require_str(entry, "output"),
                name=entry.get("name", "css"),
            )
    msg = f"unknown task kind {kind!r} (expected render, mount or css)"
    raise ConfigError(msg)


def _input(entry: Any) -> Input:
    if not isinstance(entry, dict):
        msg = f"input must be a table, got {entry!r}"
        raise ConfigError(msg)
    _check_keys(entry, {"paths", "glob", "inputs", "aggregate"})
    forms = [k for k in ("paths", "glob", "inputs") if k in entry]
    if len(forms) != 1:
        msg = f"input needs exactly one of paths, glob or inputs: {entry!r}"
        raise ConfigError(msg)

    aggregate = entry.get("aggregate")
    if aggregate is not None and not isinstance(aggregate, str):
        msg = f"'aggregate' must be a function name: {entry!r}"
        raise ConfigError(msg)

    match forms[0]:
        case "paths":
            paths = entry["paths"]
            if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
                msg = f"'paths' must be a list of strings: {entry!r}"
                raise ConfigError(msg)
            base: Input = PathsInput(tuple(paths))
        case "glob":
            base = GlobInput(_require_str(entry, "glob"))
        case _:
            if aggregate is None:
                msg = f"nested inputs need an 'aggregate' function: {entry!r}"
                raise ConfigError(msg)
            return AggregationInput(tuple(_input(i) for i in _list(entry, "inputs")), aggregate)

    if aggregate is None:
        return base
    return AggregationInput((base,), aggregate)


def _param(entry: Any) -> Param:
    if not isinstance(entry, dict):
        msg = f"param must be a table, got {entry!r}"
        raise ConfigError(msg)
    if "static" in entry:
        return StaticParam(_require_str(entry, "static"))
    if "custom" in entry:
        return CustomParam(_require_str(entry, "custom"))
    if "bind" in entry:
        return BindParam(_require_str(entry, "bind"))
    if "values" in entry:
        values = entry["values"]
        if not isinstance(values, dict) or not all(isinstance(v, str) for v in values.values()):
            msg = f"'values' must map keys to function names: {entry!r}"
            raise ConfigError(msg)
        return MultipleParam(tuple(values.items()))
    if "handler" in entry:
        args = entry.get("args", [])
        if not isinstance(args, list):
            msg = f"'args' must be a list: {entry!r}"
            raise ConfigError(msg)
        return HandlerParam(
            _require_str(entry, "key"),
            _require_str(entry, "handler"),
            tuple(str(a) for a in args),
        )
    if "value" in entry:
        return SingleParam(_require_str(entry, "key"), _require_str(entry, "value"))
    msg = f"unrecognised param {entry!r}"
    raise ConfigError(msg)


def _check_keys(entry: dict[str, Any], allowed: set[str]) -> None:
    unknown = sorted(set(entry) - allowed)
    if unknown:
        msg = f"unknown key(s) {', '.join(unknown)}"
        raise ConfigError(msg)


def _require_str(entry: dict[str, Any], key: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value:
        msg = f"{key!r} must be a non-empty string"
        raise ConfigError(msg)
    return value


def _list(entry: dict[str, Any], key: str) -> list[Any]:
    value = entry.get(key, [])
    if not isinstance(value, list):
        msg = f"{key!r} must be a list"
        raise ConfigError(msg)
    return value
