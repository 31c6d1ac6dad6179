"""Plugins and dependency-ordered plugin scheduling.

A plugin is any object with ``get_id()``, ``get_requirements()`` and
``run()``. Plugins are registered with a Swallower through a factory
(usually the plugin class), and run by ``Swallower.run()`` before any task
reaches the build runtime, so they can register glob sets, tasks and task
sets of their own.

Example:
    class Styles(Plugin):
        id = "styles"
        requires = ("core",)

        def run(self):
            self.swallower.extend_glob_set("css", self.options["css"])
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TYPE_CHECKING

from .exceptions import PluginDependencyError

if TYPE_CHECKING:
    from .swallower import Swallower

logger = logging.getLogger(__name__)


class Plugin(ABC):
    """Base class for swallower plugins.

    Subclasses set ``id`` and ``requires`` and implement ``run``.
    """

    id: str = ""
    requires: Sequence[str] = ()

    def __init__(self, swallower: 'Swallower', options: Optional[Dict[str, Any]] = None):
        self.swallower = swallower
        self.options = dict(options or {})

    def get_id(self) -> str:
        return self.id or type(self).__name__

    def get_requirements(self) -> List[str]:
        return list(self.requires)

    @abstractmethod
    def run(self) -> None:
        """Apply the plugin to its swallower."""
        pass


class PluginScheduler:
    """Run plugins in an order consistent with their requirements.

    A requirement on id X is satisfied as soon as any plugin with id X has
    run. Among plugins that are ready at the same time, registration order
    wins.
    """

    def schedule(
        self,
        plugins: Sequence[Any],
        on_stuck: Optional[Callable[[], None]] = None,
        satisfied: Iterable[str] = (),
        strict: bool = False,
    ) -> List[Any]:
        """Run plugins in dependency order.

        Plugins blocked by a cycle or by a requirement that no plugin
        provides never run. Everything that can run does run first.

        Args:
            plugins: Plugin instances in registration order
            on_stuck: Called once if some plugins can never run
            satisfied: Ids of plugins that already ran in an earlier pass
            strict: Raise PluginDependencyError when stuck and no on_stuck
                    is given, instead of only logging a warning

        Returns:
            The plugins that ran, in run order
        """
        completed_ids = set(satisfied)
        plugins = list(plugins)
        ids = [p.get_id() for p in plugins]
        provided = set(ids)

        # Kahn's algorithm: one node per plugin, one release per required id
        in_degree = [0] * len(plugins)
        waiting: Dict[str, List[int]] = {}
        missing: List[str] = []
        for index, plugin in enumerate(plugins):
            for req in dict.fromkeys(plugin.get_requirements()):
                if req in completed_ids:
                    continue
                in_degree[index] += 1
                waiting.setdefault(req, []).append(index)
                if req not in provided and req not in missing:
                    missing.append(req)

        ready = deque(i for i, degree in enumerate(in_degree) if degree == 0)
        completed: List[Any] = []
        done = set()
        while ready:
            index = ready.popleft()
            logger.debug(f"Running plugin '{ids[index]}'")
            plugins[index].run()
            completed.append(plugins[index])
            done.add(index)

            if ids[index] in completed_ids:
                continue
            completed_ids.add(ids[index])
            released = []
            for dependent in waiting.pop(ids[index], []):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    released.append(dependent)
            ready.extend(sorted(released))

        if len(done) < len(plugins):
            blocked = [ids[i] for i in range(len(plugins)) if i not in done]
            logger.warning(
                f"Plugin scheduling stuck; not run: {blocked}"
                + (f", missing requirements: {missing}" if missing else "")
            )
            if on_stuck is not None:
                on_stuck()
            elif strict:
                raise PluginDependencyError(blocked, missing, completed)

        return completed
