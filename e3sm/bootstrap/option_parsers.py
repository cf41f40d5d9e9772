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
"""Command line parsing shared by the e3sm-bootstrap commands."""

import logging
from optparse import (
    IndentedHelpFormatter,
    Option,
    OptionParser,
)
import os
import re
import sys
from typing import List, Optional, Tuple

from ansimarkup import (
    parse as cparse,
    strip as cstrip
)

from e3sm.bootstrap import LOG
from e3sm.bootstrap.terminal import should_use_color, DIM
import e3sm.bootstrap.flags
from e3sm.bootstrap.loggingutil import (
    BootstrapLogFormatter,
    setup_segregated_log_streams,
)
from e3sm.bootstrap.log_level import (
    env_to_verbosity,
    verbosity_to_log_level
)


# (name, description) pairs documenting positional arguments
ArgDoc = List[Tuple[str, str]]


def format_shell_examples(string: str) -> str:
    """Dim the comments in shell examples.

    Examples:
        >>> format_shell_examples('$ e3sm-bootstrap')
        '$ e3sm-bootstrap'

    """
    return cparse(
        re.sub(
            r'^(\s*(?:\$[^#]+)?)(#.*)$',
            rf'\1<{DIM}>\2</{DIM}>',
            string,
            flags=re.M,
        )
    )


def format_help_headings(string: str) -> str:
    """Embolden unindented lines which end in a colon."""
    return cparse(re.sub(r'^(\w.*:)$', r'<bold>\1</bold>', string, flags=re.M))


class BootstrapOption(Option):
    """Option class with a "decrement" action for ``-q``."""

    ACTIONS = Option.ACTIONS + ('decrement',)
    STORE_ACTIONS = Option.STORE_ACTIONS + ('decrement',)

    def take_action(self, action, dest, opt, value, values, parser):
        if action == 'decrement':
            setattr(values, dest, values.ensure_value(dest, 0) - 1)
        else:
            super().take_action(action, dest, opt, value, values, parser)


class BootstrapHelpFormatter(IndentedHelpFormatter):
    """Render markup in help text if ``--color`` allows, else strip it."""

    def _render(self, text: str) -> str:
        if should_use_color(self.parser.values):
            return format_shell_examples(format_help_headings(text))
        return cstrip(text)

    def format_usage(self, usage: str) -> str:
        return super().format_usage(self._render(usage))

    def format_option(self, option: Option) -> str:
        if option.help:
            if should_use_color(self.parser.values):
                option.help = cparse(option.help)
            else:
                option.help = cstrip(option.help)
        return super().format_option(option)


class BootstrapOptionParser(OptionParser):
    """Option parser for the e3sm-bootstrap commands.

    Adds the logging and color options every command shares, checks the
    number of positional arguments against ``argdoc`` and sets up logging
    to the terminal once the arguments are parsed.

    Args:
        usage:
            Usage instructions, normally the module ``__doc__``. ``ARGS`` is
            replaced by the argument names.
        argdoc:
            The positional arguments, use ``optional`` to mark an argument
            which may be omitted.
        confirm:
            Add the ``--yes`` option for skipping confirmation prompts.

    """

    def __init__(
        self,
        usage: str,
        argdoc: Optional[ArgDoc] = None,
        confirm: bool = False,
    ) -> None:
        self.confirm = confirm
        self.n_compulsory_args = 0
        self.n_optional_args = 0
        if argdoc:
            usage = self._document_args(usage, argdoc)
        super().__init__(
            usage,
            option_class=BootstrapOption,
            formatter=BootstrapHelpFormatter()
        )
        self._std_options_added = False

    def _document_args(self, usage: str, argdoc: ArgDoc) -> str:
        width = max(len(arg) for arg, _ in argdoc) + 15
        lines = [usage.replace('ARGS', ''.join(f'{a} ' for a, _ in argdoc))]
        lines.append('\nArguments:')
        for arg, desc in argdoc:
            if arg.startswith('['):
                self.n_optional_args += 1
            else:
                self.n_compulsory_args += 1
            lines.append(f'   {arg.ljust(width)}{desc}')
        return '\n'.join(lines)

    def add_std_options(self) -> None:
        """Add the shared options after the command's own options."""
        if self._std_options_added:
            return
        self._std_options_added = True
        self.add_option(
            '-q', '--quiet', help='Decrease verbosity.',
            action='decrement', dest='verbosity')
        self.add_option(
            '-v', '--verbose', help='Increase verbosity.',
            action='count', dest='verbosity',
            default=env_to_verbosity(os.environ))
        self.add_option(
            '--debug', help='Equivalent to -v -v.',
            action='store_const', const=2, dest='verbosity')
        self.add_option(
            '--timestamp',
            help='Add a timestamp to messages logged to the terminal.',
            action='store_true', dest='log_timestamp', default=False)
        self.add_option(
            '--color', '--colour', metavar='WHEN',
            action='store', default='auto',
            choices=['never', 'auto', 'always'],
            help="When to use color/bold text in terminal output."
            " Options are 'never', 'auto' and 'always'.")
        if self.confirm:
            self.add_option(
                '-y', '--yes',
                help='Answer yes to confirmation prompts'
                ' (for non-interactive use).',
                action='store_true', dest='assume_yes', default=False)

    def parse_args(self, args=None, values=None):
        """Parse the arguments then configure logging.

        Logging at levels below WARNING goes to stdout alongside the
        configure/make output, warnings and errors go to stderr.
        """
        self.add_std_options()
        options, args = super().parse_args(args, values)

        if len(args) < self.n_compulsory_args:
            self.error("Wrong number of arguments (too few)")
        elif len(args) > self.n_compulsory_args + self.n_optional_args:
            self.error("Wrong number of arguments (too many)")

        e3sm.bootstrap.flags.verbosity = options.verbosity
        self._setup_logging(options)
        return options, args

    @staticmethod
    def _setup_logging(options) -> None:
        LOG.setLevel(verbosity_to_log_level(options.verbosity))
        for handler in list(LOG.handlers):
            handler.close()
            LOG.removeHandler(handler)
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(BootstrapLogFormatter(
            timestamp=options.log_timestamp,
            dev_info=options.verbosity > 2,
        ))
        LOG.addHandler(stderr_handler)
        setup_segregated_log_streams(LOG, stderr_handler)

    @staticmethod
    def optional(arg: Tuple[str, str]) -> Tuple[str, str]:
        """Mark an argdoc entry as optional.

        Examples:
            >>> BootstrapOptionParser.optional(('TARGET', 'What to install.'))
            ('[TARGET]', 'What to install.')

        """
        name, doc = arg
        return (f'[{name}]', doc)
