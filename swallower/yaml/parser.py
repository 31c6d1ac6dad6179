"""YAML parsing and validation for swallower build configurations.

This module handles parsing swallower.yaml files and validating their
structure. It does not import plugins or templates; see loader.py.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from swallower.exceptions import ConfigError
from swallower.tasksets import TaskSetMode


@dataclass
class SwallowerConfig:
    """Parsed YAML configuration."""
    config: Dict[str, Any] = field(default_factory=dict)
    glob_sets: Dict[str, Any] = field(default_factory=dict)
    extend_glob_sets: Dict[str, Any] = field(default_factory=dict)
    plugins: List[Dict[str, Any]] = field(default_factory=list)
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    task_sets: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def parse_yaml_file(path: Union[str, Path]) -> SwallowerConfig:
    """Parse and validate a swallower.yaml file.

    Args:
        path: Path to the YAML file

    Returns:
        SwallowerConfig with the parsed sections

    Raises:
        ConfigError: If the file is invalid or missing required fields
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    with open(path) as f:
        return parse_yaml_string(f.read())


def parse_yaml_string(content: str) -> SwallowerConfig:
    """Parse YAML content from a string.

    Args:
        content: YAML content as string

    Returns:
        SwallowerConfig with the parsed sections
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping")

    return _validate_yaml_data(data)


def _validate_yaml_data(data: Dict[str, Any]) -> SwallowerConfig:
    known = {'config', 'glob_sets', 'extend_glob_sets', 'plugins', 'tasks', 'task_sets'}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown top-level keys: {unknown}")

    config = data.get('config') or {}
    if not isinstance(config, dict):
        raise ConfigError("'config' must be a mapping")

    glob_sets = _validate_glob_sets(data.get('glob_sets') or {}, 'glob_sets')
    extend_glob_sets = _validate_glob_sets(
        data.get('extend_glob_sets') or {}, 'extend_glob_sets'
    )

    plugins = data.get('plugins') or []
    if not isinstance(plugins, list):
        raise ConfigError("'plugins' must be a list")
    plugins = [_validate_plugin(p, i) for i, p in enumerate(plugins)]

    tasks = data.get('tasks') or []
    if not isinstance(tasks, list):
        raise ConfigError("'tasks' must be a list")
    tasks = [_validate_task(t, i) for i, t in enumerate(tasks)]

    task_sets = data.get('task_sets') or {}
    if not isinstance(task_sets, dict):
        raise ConfigError("'task_sets' must be a mapping")
    task_sets = {
        name: _validate_task_set(spec, name) for name, spec in task_sets.items()
    }

    return SwallowerConfig(
        config=config,
        glob_sets=glob_sets,
        extend_glob_sets=extend_glob_sets,
        plugins=plugins,
        tasks=tasks,
        task_sets=task_sets,
    )


def _validate_globs(globs: Any, where: str) -> None:
    if isinstance(globs, str):
        return
    if not isinstance(globs, list):
        raise ConfigError(f"{where}: globs must be a string or a list")
    for item in globs:
        _validate_globs(item, where)


def _validate_glob_sets(glob_sets: Any, section: str) -> Dict[str, Any]:
    if not isinstance(glob_sets, dict):
        raise ConfigError(f"'{section}' must be a mapping")
    for name, globs in glob_sets.items():
        _validate_globs(globs, f"{section} '{name}'")
    return glob_sets


def _validate_plugin(plugin: Any, index: int) -> Dict[str, Any]:
    if isinstance(plugin, str):
        plugin = {'plugin': plugin}
    if not isinstance(plugin, dict):
        raise ConfigError(f"Plugin {index} must be a string or mapping")
    if 'plugin' not in plugin:
        raise ConfigError(f"Plugin {index} missing required field 'plugin'")
    if not isinstance(plugin['plugin'], str):
        raise ConfigError(f"Plugin {index}: 'plugin' must be an import path string")
    options = plugin.get('options')
    if options is not None and not isinstance(options, dict):
        raise ConfigError(f"Plugin '{plugin['plugin']}': 'options' must be a mapping")
    return plugin


def _validate_task(task: Any, index: int) -> Dict[str, Any]:
    if not isinstance(task, dict):
        raise ConfigError(f"Task {index} must be a mapping")

    if 'name' not in task:
        raise ConfigError(f"Task {index} missing required field 'name'")
    if not isinstance(task['name'], str):
        raise ConfigError(f"Task {index}: 'name' must be a string")

    has_shell = 'shell' in task
    has_template = 'template' in task
    if has_shell == has_template:
        raise ConfigError(
            f"Task '{task['name']}' needs exactly one of 'shell' or 'template'"
        )
    if has_shell and not isinstance(task['shell'], str):
        raise ConfigError(f"Task '{task['name']}': 'shell' must be a string")
    if has_template and not isinstance(task['template'], str):
        raise ConfigError(
            f"Task '{task['name']}': 'template' must be an import path string"
        )

    options = task.get('options')
    if options is not None and not isinstance(options, dict):
        raise ConfigError(f"Task '{task['name']}': 'options' must be a mapping")

    if 'doc' in task and not isinstance(task['doc'], str):
        raise ConfigError(f"Task '{task['name']}': 'doc' must be a string")

    return task


def _validate_task_set(spec: Any, name: str) -> Dict[str, Any]:
    if isinstance(spec, list):
        spec = {'tasks': spec}
    if not isinstance(spec, dict):
        raise ConfigError(f"Task set '{name}' must be a list or mapping")

    mode = spec.get('mode', TaskSetMode.SERIES.value)
    try:
        TaskSetMode.coerce(mode)
    except ValueError as e:
        raise ConfigError(f"Task set '{name}': {e}")

    entries = spec.get('tasks', [])
    if not isinstance(entries, list):
        raise ConfigError(f"Task set '{name}': 'tasks' must be a list")

    validated = []
    for i, entry in enumerate(entries):
        if isinstance(entry, str):
            entry = {'task': entry}
        if not isinstance(entry, dict) or not isinstance(entry.get('task'), str):
            raise ConfigError(
                f"Task set '{name}': entry {i} must be a task name or a "
                f"mapping with a 'task' name"
            )
        for key in ('before', 'after'):
            value = entry.get(key, [])
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(
                    f"Task set '{name}': '{key}' of '{entry['task']}' must be a list of names"
                )
            entry[key] = value
        validated.append(entry)

    return {'mode': mode, 'tasks': validated}
