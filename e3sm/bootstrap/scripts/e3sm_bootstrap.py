# THIS FILE IS PART OF E3SM-BOOTSTRAP.
# Copyright (C) NIWA & British Crown (Met Office) & Contributors.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""e3sm-bootstrap main entry point"""

import argparse
import sys
from typing import Iterator, NoReturn, Optional, Tuple

from ansimarkup import parse as cparse

from e3sm.bootstrap import __version__, iter_entry_points
from e3sm.bootstrap.option_parsers import (
    format_help_headings,
    format_shell_examples,
)


def get_version(long=False):
    """Return version string, and (if long is True) install location."""
    from pathlib import Path
    version = f"{__version__}"
    if long:
        version += f" ({Path(sys.argv[0])})"
    return version


USAGE = f"""e3sm-bootstrap {get_version()}

Build the libraries the E3SM climate model depends on, generate the CIME
configuration for this machine and create cases.

Quick Start:
  $ e3sm-bootstrap install-libs all     # build OpenMPI, HDF5 and NetCDF
  $ e3sm-bootstrap install-libs verify  # check the libraries are installed
  $ e3sm-bootstrap cime-config          # write the ~/.cime files
  $ e3sm-bootstrap create-case --build  # create and build a case

  $ e3sm-bootstrap help all             # see all commands
  $ e3sm-bootstrap <command> --help     # specific command help

Abbreviated commands are accepted if not ambiguous:
  $ e3sm-bootstrap inst verify
"""

# because this command is not served from behind cli_function like the
# other commands we have to manually patch in colour support
USAGE = cparse(format_help_headings(format_shell_examples(USAGE)))

# all sub-commands
# {name: entry_point}
COMMANDS: dict = {
    entry_point.name: entry_point
    for entry_point in iter_entry_points('e3sm.bootstrap.command')
}


# aliases for sub-commands
# {alias_name: command_name}
ALIASES = {
    'install': 'install-libs',
    'libs': 'install-libs',
    'cime': 'cime-config',
    'case': 'create-case',
    'newcase': 'create-case',
}


def execute_cmd(cmd: str, *args: str) -> NoReturn:
    """Execute a sub-command.

    Args:
        cmd: The name of the command.
        args: Command line arguments to pass to that command.

    """
    COMMANDS[cmd].load()(*args)
    sys.exit()


def match_command(command):
    """Permit abbreviated commands (e.g. inst -> install-libs).

    Args:
        command (string):
            The input string to match.

    Returns:
        string - The matched command.

    Exits:
        1:
            If the number of command matches != 1

    """
    possible_cmds = {
        cmd
        for cmd in COMMANDS
        if cmd.startswith(command)
    }
    if len(possible_cmds) == 0:
        print(
            f"e3sm-bootstrap {command}: unknown utility. Abort.\n"
            'Type "e3sm-bootstrap help all" for a list of utilities.',
            file=sys.stderr
        )
        sys.exit(1)
    elif len(possible_cmds) > 1:
        print(
            "e3sm-bootstrap {}: is ambiguous for:\n{}".format(
                command,
                "\n".join(
                    [
                        f"    e3sm-bootstrap {cmd}"
                        for cmd in sorted(possible_cmds)
                    ]
                ),
            ),
            file=sys.stderr,
        )
        sys.exit(1)
    else:
        command = possible_cmds.pop()
    return command


def parse_docstring(docstring):
    """Extract the description and usage lines from a sub-command docstring.

    Args:
        docstring (str):
            Multiline string i.e. __doc__

    Returns:
        tuple - (usage, description)

    Examples:
        >>> parse_docstring('e3sm-bootstrap config\\n\\nPrint the config.\\n')
        ('e3sm-bootstrap config', 'Print the config.')

    """
    lines = [
        line
        for line in (docstring or '').splitlines()
        if line
    ]
    usage = None
    desc = None
    if len(lines) > 0:
        usage = lines[0]
    if len(lines) > 1:
        desc = lines[1]
    return (usage, desc)


def iter_commands() -> Iterator[Tuple[str, Optional[str], Optional[str]]]:
    """Yield all e3sm-bootstrap sub-commands.

    Yields:
        (command, description, usage)

    """
    for cmd, entry_point in sorted(COMMANDS.items()):
        module = __import__(entry_point.module, fromlist=[''])
        usage, desc = parse_docstring(module.__doc__)
        yield (cmd, desc, usage)


def print_command_list(commands=None, indent=0):
    """Print list of e3sm-bootstrap commands.

    Args:
        commands (list):
            List of commands to display.
        indent (int):
            Number of spaces to put at the start of each line.

    """
    from e3sm.bootstrap.terminal import print_contents
    contents = [
        (cmd, desc)
        for cmd, desc, _, in iter_commands()
        if not commands
        or cmd in commands
    ]
    print_contents(contents, indent=indent, char=cparse('<dim>.</dim>'))


def cli_help():
    """Display the main help page."""
    # we need to do this explicitly as this command is not behind cli_function
    from colorama import init as color_init
    color_init(autoreset=True, strip=False)
    print(USAGE)
    sys.exit(0)


def cli_version(long_fmt=False):
    """Wrapper for get_version."""
    print(get_version(long_fmt))
    sys.exit(0)


def get_arg_parser():
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        '--help', '-h',
        action='store_true',
        default=False,
        dest='help_'
    )
    parser.add_argument(
        '--version', '-V',
        action='store_true',
        default=False,
        dest='version'
    )
    return parser


def main():
    opts, cmd_args = get_arg_parser().parse_known_args()
    if not cmd_args:
        if opts.version:
            cli_version()
        else:
            cli_help()
    else:
        cmd_args = list(cmd_args)
        command = cmd_args.pop(0)

        if command == "version":
            cli_version("--long" in cmd_args)

        if command == "help":
            opts.help_ = True
            if not len(cmd_args):
                cli_help()
            elif cmd_args == ['all']:
                print_command_list()
                sys.exit(0)
            else:
                command = cmd_args.pop(0)

        # this is an alias to a command
        if command in ALIASES:
            command = ALIASES.get(command)

        if command not in COMMANDS:
            # check if this is a command abbreviation or exit
            command = match_command(command)
        if opts.help_:
            execute_cmd(command, *cmd_args, "--help")
        else:
            if opts.version:
                cmd_args.append("--version")
            execute_cmd(command, *cmd_args)
