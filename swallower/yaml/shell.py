"""Shell command template with glob set injection.

Glob sets named in the command are injected in TWO ways:
1. Format string substitution: {scripts}, {styles}
2. Environment variables: scripts='src/*.js lib/*.js'

Example:
    command = "cat {scripts} > dist/app.js"

    With scripts=['src/*.js', 'lib/*.js']:
    - Command: cat src/*.js lib/*.js > dist/app.js
    - Env: scripts='src/*.js lib/*.js'

Patterns are shell-quoted only when they contain whitespace or quotes,
so the shell still expands wildcards.
"""

import os
import re
import shlex
import string
import subprocess
import sys
from typing import Any, Dict, List

from swallower.exceptions import ConfigError
from swallower.templates import TaskTemplate

_NEEDS_QUOTING = re.compile(r"[\s'\"]")


def _quote(pattern: str) -> str:
    if _NEEDS_QUOTING.search(pattern):
        return shlex.quote(pattern)
    return pattern


class ShellTemplate(TaskTemplate):
    """Run a shell command with glob sets substituted in."""

    def construct(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """Check the command and collect the glob sets it names.

        Raises:
            ConfigError: If 'command' is missing or not a string
        """
        command = options.get('command')
        if not isinstance(command, str):
            raise ConfigError("ShellTemplate requires a 'command' string option")
        settled = dict(options)
        settled['glob_sets'] = self.field_names(command)
        settled.setdefault('doc', command)
        return settled

    @staticmethod
    def field_names(command: str) -> List[str]:
        """Return the {placeholders} of a command in order of appearance."""
        names = []
        for _, field_name, _, _ in string.Formatter().parse(command):
            if field_name and field_name not in names:
                names.append(field_name)
        return names

    def _build_substitutions(self, globs, options: Dict[str, Any]) -> Dict[str, str]:
        subs: Dict[str, str] = {}
        for name, value in (options.get('env') or {}).items():
            subs[name] = str(value)

        for name in options['glob_sets']:
            if name in subs:
                continue
            glob_set = globs.get_glob_set(name)
            if glob_set is None:
                raise KeyError(
                    f"Unknown glob set '{name}' in shell command "
                    f"{options['command']!r}"
                )
            subs[name] = " ".join(_quote(g) for g in glob_set)
        return subs

    def _build_environment(self, subs: Dict[str, str]) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(subs)
        return env

    def execute(self, globs, options: Dict[str, Any]) -> bool:
        """Execute the shell command.

        Returns:
            True on success

        Raises:
            subprocess.CalledProcessError: If the command fails
        """
        subs = self._build_substitutions(globs, options)
        cmd = options['command'].format(**subs)
        env = self._build_environment(subs)

        result = subprocess.run(
            cmd,
            shell=True,
            env=env,
            cwd=options.get('cwd'),
            capture_output=True,
            text=True,
        )

        if result.stdout:
            print(result.stdout, end='')
        if result.returncode != 0:
            if result.stderr:
                print(result.stderr, file=sys.stderr)
            raise subprocess.CalledProcessError(
                result.returncode,
                cmd,
                result.stdout,
                result.stderr,
            )

        return True

    def __repr__(self) -> str:
        return "ShellTemplate()"
