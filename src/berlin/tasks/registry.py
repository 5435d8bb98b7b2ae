"""Named-function registry for the task table.

Tasks refer to behaviour by name; the registry maps each name to a
callable within one namespace per role:

- ``aggregators``: ``(task name, sources) -> AggregatedSources``
- ``static``: ``() -> Context``
- ``values``: ``(AggregatedSources) -> value``
- ``custom``: ``(AggregatedSources) -> Context``
- ``binders``: ``(ParsedSource) -> Context``
- ``handlers``: ``(*args) -> ((AggregatedSources) -> value)``
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Literal

from berlin._errors import ConfigError
from berlin.tasks.model import (
    AggregationInput,
    BindParam,
    CustomParam,
    HandlerParam,
    Input,
    MultipleParam,
    Param,
    RenderTask,
    SingleParam,
    StaticParam,
    Task,
)

type Namespace = Literal["aggregators", "static", "values", "custom", "binders", "handlers"]

NAMESPACES: tuple[Namespace, ...] = (
    "aggregators",
    "static",
    "values",
    "custom",
    "binders",
    "handlers",
)


class FunctionRegistry:
    """Maps ``(namespace, name)`` to a callable."""

    __slots__ = ("_functions",)

    def __init__(self) -> None:
        self._functions: dict[str, dict[str, Callable[..., Any]]] = {ns: {} for ns in NAMESPACES}

    def register(
        self,
        namespace: Namespace,
        name: str,
        fn: Callable[..., Any],
    ) -> Callable[..., Any]:
        """Register *fn* under *name*; a later registration replaces it."""
        self._namespace(namespace)[name] = fn
        return fn

    def function(self, namespace: Namespace, name: str | None = None) -> Callable[..., Any]:
        """Decorator form of ``register`` (name defaults to ``__name__``)."""

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            return self.register(namespace, name or fn.__name__, fn)

        return decorator

    def get(self, namespace: Namespace, name: str) -> Callable[..., Any]:
        """Look up a function.

        Raises:
            ConfigError: If nothing is registered under *name*.

        """
        try:
            return self._namespace(namespace)[name]
        except KeyError:
            msg = f"Unknown {namespace} function {name!r}"
            raise ConfigError(msg) from None

    def names(self, namespace: Namespace) -> list[str]:
        return sorted(self._namespace(namespace))

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        namespace, name = item
        return name in self._functions.get(namespace, {})

    def _namespace(self, namespace: str) -> dict[str, Callable[..., Any]]:
        try:
            return self._functions[namespace]
        except KeyError:
            msg = f"Unknown function namespace {namespace!r}"
            raise ConfigError(msg) from None

    # ----- Validation -----

    def validate(self, tasks: Iterable[Task]) -> None:
        """Check that every name the task table refers to is registered.

        Raises:
            ConfigError: Naming the first task with an unknown reference.

        """
        for task in tasks:
            if not isinstance(task, RenderTask):
                continue
            try:
                for input_ in task.inputs:
                    self._validate_input(input_)
                for param in task.params:
                    self._validate_param(param)
            except ConfigError as exc:
                msg = f"Task {task.name!r}: {exc}"
                raise ConfigError(msg) from exc

    def _validate_input(self, input_: Input) -> None:
        if isinstance(input_, AggregationInput):
            self.get("aggregators", input_.aggregate)
            for nested in input_.inputs:
                self._validate_input(nested)

    def _validate_param(self, param: Param) -> None:
        match param:
            case StaticParam(provider=name):
                self.get("static", name)
            case SingleParam(provider=name):
                self.get("values", name)
            case MultipleParam(mappings=mappings):
                for _, name in mappings:
                    self.get("values", name)
            case CustomParam(provider=name):
                self.get("custom", name)
            case BindParam(provider=name):
                self.get("binders", name)
            case HandlerParam(handler=name):
                self.get("handlers", name)
