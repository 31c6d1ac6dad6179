"""Task templates and task definitions.

A template turns options into a task function for the build runtime. It
works in two phases:

1. ``construct(options)`` runs when the task is registered. Glob sets are
   still being composed at that point, so this phase gets no glob access.
2. ``execute(globs, options)`` runs when the build runtime runs the task.
   ``globs`` is the Swallower's GlobSetGetter, which is open by then.

Example:
    @task_template
    def concat(globs, options):
        for pattern in globs.get_glob_set(options["glob_set"]):
            ...

    swallower.register_task("build:js", concat, {"glob_set": "scripts"})

Plain callables with the signature ``(globs, options) -> task function``
are accepted too; they are called once, at registration time.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from .globs import GlobSetGetter


class TaskTemplate(ABC):
    """Base class for two-phase task templates."""

    def construct(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """Validate or complete options at registration time.

        Returns:
            The options passed to ``execute`` later
        """
        return options

    @abstractmethod
    def execute(self, globs: 'GlobSetGetter', options: Dict[str, Any]) -> Any:
        """Run the task."""
        pass


class FunctionTemplate(TaskTemplate):
    """TaskTemplate whose execute phase is a plain function."""

    def __init__(self, func: Callable[['GlobSetGetter', Dict[str, Any]], Any]):
        self.func = func
        self.__doc__ = func.__doc__

    def execute(self, globs, options):
        return self.func(globs, options)

    def __repr__(self) -> str:
        return f"FunctionTemplate({getattr(self.func, '__name__', self.func)!r})"


def task_template(func: Callable[['GlobSetGetter', Dict[str, Any]], Any]) -> FunctionTemplate:
    """Decorator turning ``func(globs, options)`` into a TaskTemplate."""
    return FunctionTemplate(func)


@dataclass
class BoundTask:
    """A template bound to its options and glob gate.

    Calling it runs the template's execute phase.
    """
    name: str
    template: TaskTemplate
    globs: 'GlobSetGetter' = field(repr=False)
    options: Dict[str, Any] = field(default_factory=dict)

    def __call__(self) -> Any:
        return self.template.execute(self.globs, self.options)

    @property
    def doc(self):
        return self.options.get('doc') or getattr(self.template, '__doc__', None)


@dataclass
class TaskDefinition:
    """Name and template options for one task."""
    name: str
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def coerce(cls, value: Union['TaskDefinition', Mapping[str, Any]]) -> 'TaskDefinition':
        """Accept a TaskDefinition or a mapping with 'name' and 'options'."""
        if isinstance(value, cls):
            return value
        return cls(name=value['name'], options=dict(value.get('options') or {}))


def render_task(
    name: str,
    template: Union[TaskTemplate, Callable],
    globs: 'GlobSetGetter',
    options: Dict[str, Any],
) -> Callable[[], Any]:
    """Build the task function for a template.

    TaskTemplates get their construct phase now and execute later.
    Plain callables are called now and must return the task function.
    """
    if isinstance(template, TaskTemplate):
        return BoundTask(name, template, globs, template.construct(options))
    return template(globs, options)
