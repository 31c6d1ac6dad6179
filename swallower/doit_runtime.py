"""Build runtime backed by doit.

Tasks become doit ``Task`` objects with a python-action. Task sets become:

- series: a task whose action runs the members one after another
- parallel: a group task whose ``task_dep`` lists the members, so that
  ``doit -n N`` is free to run them concurrently

Example:
    import sys
    from doit.doit_cmd import DoitMain

    swallower = Swallower()
    ...  # register glob sets, tasks, task sets and plugins
    sys.exit(DoitMain(SwallowerTaskLoader(swallower)).run(sys.argv[1:]))
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, TYPE_CHECKING

from doit.cmd_base import TaskLoader2
from doit.task import Task, first_line

from .exceptions import UnknownTaskError
from .runtime import BuildRuntime

if TYPE_CHECKING:
    from .swallower import Swallower

logger = logging.getLogger(__name__)


@dataclass
class SeriesUnit:
    """Task set whose members run one after another."""
    names: List[str]

    @property
    def doc(self) -> str:
        return "series: " + ", ".join(self.names)


@dataclass
class ParallelUnit:
    """Task set whose members may run concurrently."""
    names: List[str]

    @property
    def doc(self) -> str:
        return "parallel: " + ", ".join(self.names)


class DoitRuntime(BuildRuntime):
    """Collect tasks and task sets as doit tasks."""

    def __init__(self):
        self.units: 'OrderedDict[str, Any]' = OrderedDict()

    def task(self, name: str, unit: Any) -> None:
        self.units[name] = unit

    def series(self, names: Sequence[str]) -> SeriesUnit:
        return SeriesUnit(list(names))

    def parallel(self, names: Sequence[str]) -> ParallelUnit:
        return ParallelUnit(list(names))

    def run(self, name: str) -> bool:
        """Run a unit in-process. Used by series actions.

        Members of a parallel unit run in order here; concurrency is only
        available when doit schedules the group task itself.

        Returns:
            False if any task function returned False, else True

        Raises:
            UnknownTaskError: If name was never registered
        """
        if name not in self.units:
            raise UnknownTaskError(name)
        unit = self.units[name]
        if isinstance(unit, (SeriesUnit, ParallelUnit)):
            results = [self.run(member) for member in unit.names]
            return all(results)
        logger.debug(f"Running task '{name}'")
        return unit() is not False

    def _make_action(self, name: str) -> Callable[[], bool]:
        def action():
            return self.run(name)
        action.__name__ = f"run_{name}"
        return action

    def doit_tasks(self) -> List[Task]:
        """Return a doit Task for every registered unit, in order."""
        tasks = []
        for name, unit in self.units.items():
            if isinstance(unit, ParallelUnit):
                task = Task(name, None, task_dep=list(unit.names), doc=unit.doc)
            else:
                if hasattr(unit, 'doc'):
                    doc = unit.doc
                else:
                    doc = getattr(unit, '__doc__', None)
                task = Task(name, [self._make_action(name)], doc=first_line(doc))
            tasks.append(task)
        return tasks


class SwallowerTaskLoader(TaskLoader2):
    """doit task loader that runs a Swallower into a DoitRuntime.

    Args:
        swallower: Configured Swallower; plugins run when tasks are loaded
        config: DOIT_CONFIG style options (dep_file, verbosity, ...)
    """

    def __init__(self, swallower: 'Swallower', config: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.swallower = swallower
        self.doit_config = dict(config or {})
        self.runtime = DoitRuntime()

    def setup(self, opt_values):
        pass

    def load_doit_config(self):
        return dict(self.doit_config)

    def load_tasks(self, cmd, pos_args):
        self.swallower.run(runtime=self.runtime)
        return self.runtime.doit_tasks()
