"""swallower - extendable build tasks, glob sets and plugins.

Register tasks, glob sets and ordered task sets, let plugins extend them in
dependency order, then hand everything to a build runtime.

Example:
    from swallower import Swallower, LocalRuntime, task_template

    @task_template
    def show(globs, options):
        print(globs.get_glob_set(options["glob_set"]))

    runtime = LocalRuntime()
    swallower = Swallower(runtime)
    swallower.register_glob_set("scripts", ["src/*.js", ["lib/*.js"]])
    swallower.register_task("show", show, {"glob_set": "scripts"})
    swallower.extend_task_set("default", "series", "show")
    swallower.run()
    runtime.run("default")

Classes:
    Swallower: Registry of tasks, glob sets, task sets and plugins
    GlobSetGetter: Gated glob set access for task templates
    NamedGlobSet: Glob set with its name
    TaskSets, TaskSetMode: Ordered task sets
    Plugin, PluginScheduler: Plugins and dependency-ordered scheduling
    TaskTemplate, TaskDefinition: Task templates and definitions
    BuildRuntime, LocalRuntime: Build runtime interface and in-process host
"""

from .exceptions import (
    SwallowerError, TaskSetOrderError, PluginDependencyError,
    UnknownTaskError, ConfigError,
)
from .globs import GlobSetGetter, NamedGlobSet, flatten_globs
from .tasksets import TaskSets, TaskSetMode
from .plugins import Plugin, PluginScheduler
from .templates import TaskTemplate, TaskDefinition, BoundTask, task_template
from .runtime import BuildRuntime, LocalRuntime
from .swallower import Swallower

__all__ = [
    # Errors
    'SwallowerError', 'TaskSetOrderError', 'PluginDependencyError',
    'UnknownTaskError', 'ConfigError',
    # Globs
    'GlobSetGetter', 'NamedGlobSet', 'flatten_globs',
    # Task sets
    'TaskSets', 'TaskSetMode',
    # Plugins
    'Plugin', 'PluginScheduler',
    # Templates
    'TaskTemplate', 'TaskDefinition', 'BoundTask', 'task_template',
    # Runtimes
    'BuildRuntime', 'LocalRuntime',
    'Swallower',
]
