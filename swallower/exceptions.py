"""Exceptions raised by swallower."""

from typing import Any, List, Optional, Sequence


class SwallowerError(Exception):
    """Base class for all swallower errors."""
    pass


class TaskSetOrderError(SwallowerError):
    """A task could not be placed in a task set.

    Raised when the ``before``/``after`` constraints contradict each other,
    or when constraints are given for a task set that does not exist yet.
    """

    def __init__(self, task_set: str, task: str,
                 before: Sequence[str] = (), after: Sequence[str] = ()):
        self.task_set = task_set
        self.task = task
        self.before = list(before)
        self.after = list(after)
        super().__init__(
            f"Cannot insert task '{task}' into task set '{task_set}' "
            f"(before={self.before}, after={self.after})"
        )


class PluginDependencyError(SwallowerError):
    """Plugin scheduling cannot make progress.

    Attributes:
        blocked: ids of plugins that never ran
        missing: required ids that no queued plugin provides
        completed: plugins that ran before scheduling got stuck
    """

    def __init__(self, blocked: List[str], missing: List[str],
                 completed: Optional[List[Any]] = None):
        self.blocked = blocked
        self.missing = missing
        self.completed = list(completed or [])
        msg = f"Plugins could not be scheduled: {blocked}"
        if missing:
            msg += f" (missing requirements: {missing})"
        else:
            msg += " (circular requirements)"
        super().__init__(msg)


class UnknownTaskError(SwallowerError, KeyError):
    """A runtime was asked to run a task that was never registered."""

    def __str__(self):
        return f"Unknown task: {self.args[0]!r}"


class ConfigError(SwallowerError):
    """Error parsing or validating a build configuration."""
    pass
