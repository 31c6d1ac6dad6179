"""Glob sets and the glob gate.

Glob sets are named, ordered lists of glob patterns. Patterns can be given
as a single string or as nested lists of arbitrary depth:

    flatten_globs(["src/*.js", ["lib/*.js", ["src/*.js"]]])
    # ['src/*.js', 'lib/*.js']

Task templates never read glob sets directly. They receive a GlobSetGetter,
which refuses to hand out globs until every plugin has had a chance to
extend them and the owning Swallower has called ``ready()``.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from .swallower import Swallower

GlobInput = Union[str, List[Any], tuple]


@dataclass
class NamedGlobSet:
    """A glob set together with the name it is registered under."""
    name: str
    glob_set: GlobInput

    @classmethod
    def coerce(cls, value: Union['NamedGlobSet', Mapping[str, Any]]) -> 'NamedGlobSet':
        """Accept a NamedGlobSet or a mapping with 'name' and 'glob_set'."""
        if isinstance(value, cls):
            return value
        return cls(name=value['name'], glob_set=value['glob_set'])


def _iter_globs(globs: Any):
    if isinstance(globs, str):
        yield globs
    elif isinstance(globs, (list, tuple)):
        for item in globs:
            yield from _iter_globs(item)
    else:
        raise TypeError(
            f"Glob patterns must be strings or nested lists of strings, "
            f"got {type(globs).__name__}"
        )


def flatten_globs(globs: GlobInput) -> List[str]:
    """Flatten nested glob patterns and drop duplicates.

    Args:
        globs: A single pattern, or a list/tuple of patterns and nested
               lists/tuples of any depth

    Returns:
        Flat list of patterns in first-occurrence order

    Raises:
        TypeError: If a leaf is not a string
    """
    return list(dict.fromkeys(_iter_globs(globs)))


class GlobSetGetter:
    """Gated read access to the glob sets of a Swallower.

    Until ``ready()`` is called, ``get_glob_set`` returns None for every
    id, whether or not it has been registered.
    """

    def __init__(self, source: 'Swallower'):
        self._source = source
        self._state = False

    def get_glob_set(self, glob_set_id: str) -> Optional[List[str]]:
        """Return a copy of the glob set, or None if unavailable."""
        if not self._state:
            return None
        return self._source.get_glob_set(glob_set_id)

    def get_state(self) -> bool:
        """Return True once globs are ready for use."""
        return self._state

    def ready(self) -> None:
        """Open the gate. There is no way to close it again."""
        self._state = True

    def __repr__(self) -> str:
        return f"GlobSetGetter(ready={self._state})"


class GlobSets:
    """Mapping of glob set names to flattened pattern lists."""

    def __init__(self):
        self._globs: Dict[str, List[str]] = {}

    def register(self, glob_set_id: str, globs: GlobInput) -> List[str]:
        self._globs[glob_set_id] = flatten_globs(globs)
        return list(self._globs[glob_set_id])

    def extend(self, glob_set_id: str, globs: GlobInput) -> List[str]:
        existing = self._globs.get(glob_set_id, [])
        return self.register(glob_set_id, [existing, globs])

    def get(self, glob_set_id: str) -> Optional[List[str]]:
        if glob_set_id in self._globs:
            return list(self._globs[glob_set_id])
        return None

    def names(self) -> List[str]:
        return list(self._globs)

    def __contains__(self, glob_set_id: str) -> bool:
        return glob_set_id in self._globs

    def __len__(self) -> int:
        return len(self._globs)
