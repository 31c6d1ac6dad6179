"""Apply parsed YAML configurations to a Swallower.

Sections are applied in this order: glob_sets, extend_glob_sets, plugins,
tasks, task_sets. Plugins only run later, in ``Swallower.run()``, so they
see everything the configuration defines.
"""

import importlib
import logging
from typing import Any, Optional

from swallower.exceptions import ConfigError
from swallower.swallower import Swallower
from swallower.templates import TaskTemplate

from .parser import SwallowerConfig
from .shell import ShellTemplate

logger = logging.getLogger(__name__)


def import_object(path: str) -> Any:
    """Import an object from a 'package.module:attribute' path.

    Raises:
        ConfigError: If the module or attribute cannot be found
    """
    module_name, sep, attr_path = path.partition(':')
    if not sep or not module_name or not attr_path:
        raise ConfigError(
            f"Invalid import path {path!r}, expected 'package.module:attribute'"
        )

    try:
        obj = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import module '{module_name}': {e}") from e

    for attr in attr_path.split('.'):
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise ConfigError(
                f"Module '{module_name}' has no attribute '{attr_path}'"
            ) from None
    return obj


def load_config(config: SwallowerConfig,
                swallower: Optional[Swallower] = None,
                strict: bool = True) -> Swallower:
    """Register everything a configuration defines.

    Args:
        config: Parsed configuration
        swallower: Swallower to extend; a new one is created when omitted
        strict: Raise on task set entries that cannot be positioned instead
                of skipping them with a warning

    Returns:
        The Swallower

    Raises:
        ConfigError: If a plugin or template cannot be imported
        TaskSetOrderError: If a task set entry cannot be positioned and
            strict is set
    """
    if swallower is None:
        swallower = Swallower()

    for name, globs in config.glob_sets.items():
        swallower.register_glob_set(name, globs)

    for name, globs in config.extend_glob_sets.items():
        swallower.extend_glob_set(name, globs)

    for spec in config.plugins:
        factory = import_object(spec['plugin'])
        swallower.register_plugin(factory, spec.get('options') or {})

    shell = ShellTemplate()
    for spec in config.tasks:
        options = dict(spec.get('options') or {})
        if 'shell' in spec:
            template = shell
            options['command'] = spec['shell']
        else:
            template = import_object(spec['template'])
            if isinstance(template, type) and issubclass(template, TaskTemplate):
                template = template()
        if 'doc' in spec:
            options.setdefault('doc', spec['doc'])
        swallower.register_task(spec['name'], template, options)

    for name, spec in config.task_sets.items():
        for entry in spec['tasks']:
            swallower.extend_task_set(
                name,
                spec['mode'],
                entry['task'],
                before=entry['before'],
                after=entry['after'],
                strict=strict,
            )

    logger.debug(
        f"Loaded {len(config.tasks)} task(s), {len(config.task_sets)} task set(s) "
        f"and {len(config.plugins)} plugin(s)"
    )
    return swallower
