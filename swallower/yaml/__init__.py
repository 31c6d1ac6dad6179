"""YAML build configurations for swallower.

Example swallower.yaml:
    config:
      verbosity: 2

    glob_sets:
      scripts: ["src/*.js", ["lib/*.js"]]

    tasks:
      - name: "build:scripts"
        shell: "cat {scripts} > dist/app.js"
      - name: "lint"
        template: "mybuild.templates:eslint"
        options:
          glob_set: scripts

    task_sets:
      default:
        mode: series
        tasks: ["build:scripts", {task: "lint", after: ["build:scripts"]}]

Usage:
    from swallower.yaml import parse_yaml_file, load_config
    swallower = load_config(parse_yaml_file('swallower.yaml'))

CLI:
    python -m swallower swallower.yaml
"""

from .parser import parse_yaml_file, parse_yaml_string, SwallowerConfig
from .loader import load_config, import_object
from .shell import ShellTemplate

__all__ = [
    'parse_yaml_file',
    'parse_yaml_string',
    'SwallowerConfig',
    'load_config',
    'import_object',
    'ShellTemplate',
]
