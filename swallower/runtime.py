"""Build runtimes that registered tasks are handed to.

A runtime knows three things: how to register a task function under a
name, and how to combine named tasks into a series or a parallel unit.
``Swallower.run()`` materializes tasks and task sets through this
interface; the runtime decides what running them means.

Classes:
    BuildRuntime: ABC for runtimes
    LocalRuntime: In-process runtime, useful for scripts and tests
"""

import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Sequence

from .exceptions import UnknownTaskError

logger = logging.getLogger(__name__)


class BuildRuntime(ABC):
    """Interface to a host build runtime."""

    @abstractmethod
    def task(self, name: str, unit: Any) -> None:
        """Register a task unit under a name."""
        pass

    @abstractmethod
    def series(self, names: Sequence[str]) -> Any:
        """Return a unit running the named tasks one after another."""
        pass

    @abstractmethod
    def parallel(self, names: Sequence[str]) -> Any:
        """Return a unit running the named tasks concurrently."""
        pass


class LocalRuntime(BuildRuntime):
    """Run tasks in the current process.

    Series units run their members in order. Parallel units run them on a
    thread pool and re-raise the first failure after all members finish.

    Example:
        runtime = LocalRuntime()
        swallower = Swallower(runtime)
        ...
        swallower.run()
        runtime.run("default")
    """

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers
        self.tasks: 'OrderedDict[str, Callable[[], Any]]' = OrderedDict()

    def task(self, name: str, unit: Callable[[], Any]) -> None:
        if name in self.tasks:
            logger.debug(f"Replacing runtime task '{name}'")
        self.tasks[name] = unit

    def series(self, names: Sequence[str]) -> Callable[[], List[Any]]:
        names = list(names)

        def run_series() -> List[Any]:
            return [self.run(name) for name in names]

        run_series.names = names
        return run_series

    def parallel(self, names: Sequence[str]) -> Callable[[], List[Any]]:
        names = list(names)

        def run_parallel() -> List[Any]:
            if not names:
                return []
            with ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="swallower_",
            ) as pool:
                futures = [pool.submit(self.run, name) for name in names]
            # leaving the with block waits for every member
            return [future.result() for future in futures]

        run_parallel.names = names
        return run_parallel

    def run(self, name: str) -> Any:
        """Run a registered task by name.

        Raises:
            UnknownTaskError: If no task is registered under name
        """
        if name not in self.tasks:
            raise UnknownTaskError(name)
        logger.debug(f"Running task '{name}'")
        return self.tasks[name]()

    def __contains__(self, name: str) -> bool:
        return name in self.tasks
