"""Task layer — the declarative task table and the engine that runs it."""

from berlin.tasks.defaults import default_tasks, tasks_from_config
from berlin.tasks.engine import BuildReport, Engine, TaskResult
from berlin.tasks.functions import default_registry
from berlin.tasks.loader import InputLoader
from berlin.tasks.model import (
    AggregationInput,
    BindParam,
    CssTask,
    CustomParam,
    GlobInput,
    HandlerParam,
    MountTask,
    MultipleParam,
    PathsInput,
    RenderTask,
    SingleParam,
    StaticParam,
)
from berlin.tasks.registry import FunctionRegistry

__all__ = [
    "AggregationInput",
    "BindParam",
    "BuildReport",
    "CssTask",
    "CustomParam",
    "Engine",
    "FunctionRegistry",
    "GlobInput",
    "HandlerParam",
    "InputLoader",
    "MountTask",
    "MultipleParam",
    "PathsInput",
    "RenderTask",
    "SingleParam",
    "StaticParam",
    "TaskResult",
    "default_registry",
    "default_tasks",
    "tasks_from_config",
]
