"""Swallower - register extendable build tasks with a build runtime.

A Swallower collects three kinds of things before anything reaches the
build runtime:

- tasks: a name and a task function rendered from a template
- glob sets: named lists of glob patterns, read by tasks when they run
- task sets: named, ordered lists of tasks run in series or in parallel

Plugins registered with the Swallower run first, in dependency order, and
may add to all three. Then glob sets become readable and every task and
task set is handed to the runtime.

Example:
    swallower = Swallower(LocalRuntime())
    swallower.register_glob_set("scripts", ["src/*.js", "lib/*.js"])
    swallower.register_task("build:js", concat, {"glob_set": "scripts"})
    swallower.extend_task_set("default", "series", "build:js")
    swallower.register_plugin(Minify, {"level": 2})
    swallower.run()
"""

import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Union

from .exceptions import PluginDependencyError
from .globs import GlobInput, GlobSetGetter, GlobSets, NamedGlobSet
from .plugins import PluginScheduler
from .runtime import BuildRuntime
from .tasksets import TaskSetMode, TaskSets
from .templates import TaskDefinition, TaskTemplate, render_task

logger = logging.getLogger(__name__)

ErrorCallback = Optional[Callable[[], None]]


class Swallower:
    """Registry of tasks, glob sets, task sets and plugins for one build."""

    def __init__(self, runtime: Optional[BuildRuntime] = None):
        self.runtime = runtime
        self.tasks: 'OrderedDict[str, Callable[[], Any]]' = OrderedDict()
        self.glob_sets = GlobSets()
        self.task_sets = TaskSets()
        self.plugins: List[Any] = []
        self.completed_plugin_ids: Set[str] = set()
        self.scheduler = PluginScheduler()
        self.glob_set_getter = GlobSetGetter(self)

    # Tasks

    def register_task(
        self,
        task_id: str,
        task_template: Union[TaskTemplate, Callable],
        template_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Render a template and register the result as a task.

        Args:
            task_id: Name of the task
            task_template: TaskTemplate or ``(globs, options)`` callable
            template_options: Options passed to the template
        """
        options = template_options if template_options is not None else {}
        if task_id in self.tasks:
            logger.debug(f"Replacing task '{task_id}'")
        self.tasks[task_id] = render_task(
            task_id, task_template, self.glob_set_getter, options
        )
        logger.debug(f"Registered task '{task_id}'")

    def define_tasks(
        self,
        task_template: Union[TaskTemplate, Callable],
        definition_constructor: Callable[[Any], Any],
        definition_options: Any = None,
    ) -> List[str]:
        """Register tasks from a task definition constructor.

        The constructor is called with ``definition_options`` and returns a
        TaskDefinition (or a mapping with 'name' and 'options'), or a list
        of them.

        Returns:
            Names of the registered tasks
        """
        definitions = definition_constructor(definition_options)
        if isinstance(definitions, (list, tuple)):
            definitions = [TaskDefinition.coerce(d) for d in definitions]
        else:
            definitions = [TaskDefinition.coerce(definitions)]

        for definition in definitions:
            self.register_task(definition.name, task_template, definition.options)
        return [d.name for d in definitions]

    def get_task(self, task_id: str) -> Optional[Callable[[], Any]]:
        return self.tasks.get(task_id)

    # Task sets

    def extend_task_set(
        self,
        task_set_id: str,
        task_set_type: Union[TaskSetMode, str],
        task_id: str,
        error_cb: ErrorCallback = None,
        before: Sequence[str] = (),
        after: Sequence[str] = (),
        strict: bool = False,
    ) -> bool:
        """Add a task to a task set. If the task set doesn't exist, create it.

        Args:
            task_set_id: Name of the task set
            task_set_type: 'series' or 'parallel'
            task_id: Name of the task
            error_cb: Called if the position requirements cannot be met
            before: If found in the task set, the new task is placed after them
            after: If found in the task set, the new task is placed before them
            strict: Raise TaskSetOrderError on conflicts when error_cb is
                    omitted

        Returns:
            True if the task was added
        """
        return self.task_sets.extend(
            task_set_id, task_set_type, task_id, error_cb, before, after, strict
        )

    def get_task_set(self, task_set_id: str) -> Optional[List[str]]:
        """Return a copy of the named task set, or None."""
        return self.task_sets.get(task_set_id)

    # Glob sets

    def register_glob_set(self, glob_set_id: str, glob_set: GlobInput) -> None:
        """Register a glob set, replacing any previous one with that name."""
        if glob_set_id in self.glob_sets:
            logger.debug(f"Replacing glob set '{glob_set_id}'")
        self.glob_sets.register(glob_set_id, glob_set)

    def extend_glob_set(self, glob_set_id: str, glob_set: GlobInput) -> None:
        """Append globs to a glob set. If the glob set doesn't exist, create it."""
        self.glob_sets.extend(glob_set_id, glob_set)

    def register_named_glob_set(self, named_glob_set: Union[NamedGlobSet, Dict]) -> None:
        named = NamedGlobSet.coerce(named_glob_set)
        self.register_glob_set(named.name, named.glob_set)

    def extend_named_glob_set(self, named_glob_set: Union[NamedGlobSet, Dict]) -> None:
        named = NamedGlobSet.coerce(named_glob_set)
        self.extend_glob_set(named.name, named.glob_set)

    def register_named_glob_sets(self, named_glob_sets: Iterable) -> None:
        for named_glob_set in named_glob_sets:
            self.register_named_glob_set(named_glob_set)

    def extend_named_glob_sets(self, named_glob_sets: Iterable) -> None:
        for named_glob_set in named_glob_sets:
            self.extend_named_glob_set(named_glob_set)

    def get_glob_set(self, glob_set_id: str) -> Optional[List[str]]:
        """Return a copy of the named glob set, or None.

        This is not gated. Task templates read globs through
        ``glob_set_getter`` instead.
        """
        return self.glob_sets.get(glob_set_id)

    # Plugins

    def register_plugin(self, plugin_factory: Callable[..., Any],
                        plugin_options: Optional[Dict[str, Any]] = None) -> Any:
        """Construct a plugin with this swallower and queue it.

        Returns:
            The plugin instance
        """
        plugin = plugin_factory(self, plugin_options if plugin_options is not None else {})
        self.plugins.append(plugin)
        logger.debug(f"Registered plugin '{plugin.get_id()}'")
        return plugin

    @property
    def pending_plugins(self) -> List[Any]:
        """Plugins that have not run yet."""
        return list(self.plugins)

    def run_plugins(self, error_cb: ErrorCallback = None,
                    strict: bool = False) -> List[Any]:
        """Run queued plugins in dependency order.

        Plugins registered by other plugins are scheduled too. Plugins that
        ran leave the queue; blocked plugins stay in it.

        Args:
            error_cb: Called once if some plugins can never run
            strict: Raise PluginDependencyError instead when error_cb is
                    omitted; otherwise blocked plugins are only logged

        Returns:
            The plugins that ran, in run order
        """
        completed: List[Any] = []
        stuck: Optional[PluginDependencyError] = None
        while self.plugins:
            queued = list(self.plugins)
            try:
                ran = self.scheduler.schedule(
                    queued, satisfied=self.completed_plugin_ids, strict=True
                )
                stuck = None
            except PluginDependencyError as e:
                ran = e.completed
                stuck = e
            self._dequeue(ran)
            completed.extend(ran)

            queued_ids = {id(p) for p in queued}
            if all(id(p) in queued_ids for p in self.plugins):
                break

        if stuck is not None:
            if error_cb is not None:
                error_cb()
            elif strict:
                raise stuck
        return completed

    def _dequeue(self, ran: List[Any]) -> None:
        ran_ids = {id(p) for p in ran}
        self.plugins = [p for p in self.plugins if id(p) not in ran_ids]
        self.completed_plugin_ids.update(p.get_id() for p in ran)

    # Materialization

    def materialize(self, runtime: Optional[BuildRuntime] = None) -> None:
        """Hand every task and task set to the runtime.

        Tasks go first, in registration order, then task sets in creation
        order as series or parallel units.
        """
        if runtime is None:
            runtime = self.runtime
        if runtime is None:
            raise ValueError("No build runtime to materialize tasks into")

        for task_id, unit in self.tasks.items():
            runtime.task(task_id, unit)

        for task_set_id in self.task_sets.names():
            names = self.task_sets.get(task_set_id)
            if self.task_sets.mode_of(task_set_id) is TaskSetMode.PARALLEL:
                unit = runtime.parallel(names)
            else:
                unit = runtime.series(names)
            runtime.task(task_set_id, unit)

    def run(self, error_cb: ErrorCallback = None,
            runtime: Optional[BuildRuntime] = None,
            strict: bool = False) -> None:
        """Run plugins and register tasks with the build runtime.

        Blocked plugins do not stop the run: globs still become readable
        and every registered task reaches the runtime.

        Args:
            error_cb: Called if plugins cannot be scheduled
            runtime: Overrides the runtime given to the constructor
            strict: Raise PluginDependencyError when plugins cannot be
                    scheduled and error_cb is omitted
        """
        self.run_plugins(error_cb, strict)
        self.glob_set_getter.ready()
        self.materialize(runtime)
