"""Ordered task sets.

A task set is a named list of task names that is registered with the build
runtime as a single series or parallel task. Tasks are added one at a time
and may ask to be positioned relative to tasks already in the set:

    sets = TaskSets()
    sets.extend("build", "series", "clean")
    sets.extend("build", "series", "compile")
    sets.extend("build", "series", "lint", before=["clean"], after=["compile"])
    sets.get("build")  # ['clean', 'lint', 'compile']

``before`` names tasks that must run before the new task, ``after`` names
tasks that must run after it. Names that are not in the set are ignored.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Union

from .exceptions import TaskSetOrderError

logger = logging.getLogger(__name__)


class TaskSetMode(Enum):
    """How the runtime combines the members of a task set."""
    SERIES = "series"
    PARALLEL = "parallel"

    @classmethod
    def coerce(cls, mode: Union['TaskSetMode', str]) -> 'TaskSetMode':
        """Accept a TaskSetMode or its string value.

        Raises:
            ValueError: If mode is not 'series' or 'parallel'
        """
        if isinstance(mode, cls):
            return mode
        try:
            return cls(mode)
        except ValueError:
            valid = [m.value for m in cls]
            raise ValueError(
                f"Invalid task set mode {mode!r}. Valid modes: {valid}"
            ) from None


class TaskSets:
    """Named task sets in creation order, each with a recorded mode."""

    def __init__(self):
        self._sets: Dict[str, List[str]] = {}
        self._modes: Dict[str, TaskSetMode] = {}

    def extend(
        self,
        task_set_id: str,
        mode: Union[TaskSetMode, str],
        task_id: str,
        on_reject: Optional[Callable[[], None]] = None,
        before: Sequence[str] = (),
        after: Sequence[str] = (),
        strict: bool = False,
    ) -> bool:
        """Add a task to a task set, creating the set if needed.

        The mode is recorded even when the insertion is rejected.

        Args:
            task_set_id: Name of the task set
            mode: 'series' or 'parallel'
            task_id: Name of the task to add
            on_reject: Called without arguments if the task cannot be placed
            before: Tasks that must end up before the new task
            after: Tasks that must end up after the new task
            strict: Raise TaskSetOrderError on rejection when on_reject is
                    omitted

        Returns:
            True if the task was inserted
        """
        self._modes[task_set_id] = TaskSetMode.coerce(mode)

        task_set = self._sets.get(task_set_id)
        if task_set is None:
            if before or after:
                return self._reject(task_set_id, task_id, before, after, on_reject, strict)
            self._sets[task_set_id] = [task_id]
            logger.debug(f"Created task set '{task_set_id}' with '{task_id}'")
            return True

        last_before = -1
        for name in before:
            if name in task_set:
                last_before = max(last_before, task_set.index(name))

        first_after = len(task_set)
        for name in after:
            if name in task_set:
                first_after = min(first_after, task_set.index(name))

        if last_before >= first_after:
            return self._reject(task_set_id, task_id, before, after, on_reject, strict)

        task_set.insert(first_after, task_id)
        logger.debug(
            f"Inserted '{task_id}' into task set '{task_set_id}' at {first_after}"
        )
        return True

    def _reject(self, task_set_id, task_id, before, after, on_reject, strict) -> bool:
        logger.warning(
            f"Rejected '{task_id}' for task set '{task_set_id}': "
            f"before={list(before)}, after={list(after)}"
        )
        if on_reject is not None:
            on_reject()
        elif strict:
            raise TaskSetOrderError(task_set_id, task_id, before, after)
        return False

    def get(self, task_set_id: str) -> Optional[List[str]]:
        """Return a copy of the task set, or None if it doesn't exist."""
        if task_set_id in self._sets:
            return list(self._sets[task_set_id])
        return None

    def mode_of(self, task_set_id: str) -> Optional[TaskSetMode]:
        return self._modes.get(task_set_id)

    def names(self) -> List[str]:
        """Return task set names in creation order."""
        return list(self._sets)

    def __contains__(self, task_set_id: str) -> bool:
        return task_set_id in self._sets

    def __len__(self) -> int:
        return len(self._sets)
