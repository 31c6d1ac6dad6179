"""Command line entry point: run a YAML build configuration with doit.

Usage:
    swallower [options] [config] [doit arguments ...]

Example:
    swallower build.yaml                # run doit's default tasks
    swallower build.yaml list           # list tasks and task sets
    swallower build.yaml run -n 4 dist  # run a task set with 4 workers
    swallower --list-sets build.yaml    # show glob sets and task sets
    swallower build.yaml --list-sets -v # the same, with debug logging
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from doit.doit_cmd import DoitMain

from .doit_runtime import SwallowerTaskLoader
from .exceptions import SwallowerError
from .swallower import Swallower
from .yaml import load_config, parse_yaml_file


def _print_sets(swallower: Swallower) -> None:
    swallower.run_plugins()
    print("Glob sets:")
    for name in swallower.glob_sets.names():
        print(f"  {name}: {swallower.get_glob_set(name)}")
    print("Tasks:")
    for name in swallower.tasks:
        print(f"  {name}")
    print("Task sets:")
    for name in swallower.task_sets.names():
        mode = swallower.task_sets.mode_of(name).value
        print(f"  {name} ({mode}): {swallower.get_task_set(name)}")


SWALLOWER_FLAGS = ('--list-sets', '-v', '--verbose')


def _split_args(args: List[str]) -> Tuple[List[str], List[str]]:
    """Separate swallower's own arguments from those passed on to doit.

    Everything up to and including the config path belongs to swallower,
    as do --list-sets and -v/--verbose directly after it. The rest goes to
    doit unchanged, so ``swallower build.yaml run -v 2 dist`` still sets
    doit's verbosity.
    """
    own: List[str] = []
    rest = list(args)
    while rest:
        arg = rest.pop(0)
        own.append(arg)
        if not arg.startswith('-'):
            break
    while rest and rest[0] in SWALLOWER_FLAGS:
        own.append(rest.pop(0))
    return own, rest


def main(args: Optional[List[str]] = None) -> int:
    """CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for configuration errors, otherwise
        doit's exit code)
    """
    if args is None:
        args = sys.argv[1:]
    own_args, doit_args = _split_args(args)

    parser = argparse.ArgumentParser(
        description='Run swallower build configurations with doit',
        prog='swallower',
        usage='%(prog)s [--list-sets] [-v] [config] [doit arguments ...]',
    )
    parser.add_argument(
        'config',
        nargs='?',
        default='swallower.yaml',
        help='Path to the YAML configuration (default: swallower.yaml)',
    )
    parser.add_argument(
        '--list-sets',
        action='store_true',
        help='Run plugins and show glob sets and task sets without executing',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log debug information',
    )

    parsed = parser.parse_args(own_args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        config = parse_yaml_file(Path(parsed.config))
        swallower = load_config(config)

        if parsed.list_sets:
            _print_sets(swallower)
            return 0

        loader = SwallowerTaskLoader(swallower, config.config)
        return DoitMain(loader).run(doit_args)

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except SwallowerError as e:
        print(f"Error: {e}", file=sys.stderr)
        if parsed.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
