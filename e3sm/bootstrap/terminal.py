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
"""Terminal handling for the e3sm-bootstrap commands.

Covers the command wrapper which turns known errors into a one line
message, color detection and the interactive prompts.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import os
import shutil
import signal
import sys
from textwrap import wrap
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    List,
    NoReturn,
    Optional,
    Tuple,
    Union,
)

from ansimarkup import parse as cparse
from colorama import init as color_init

from e3sm.bootstrap import BOOTSTRAP_LOG
from e3sm.bootstrap.exceptions import BootstrapError
import e3sm.bootstrap.flags
from e3sm.bootstrap.loggingutil import BootstrapLogFormatter
from e3sm.bootstrap.parsec.exceptions import ParsecError


if TYPE_CHECKING:
    from optparse import OptionParser, Values


# format for errors which end a command
EXC_EXIT = cparse('<red><bold>{name}: </bold>{exc}</red>')

# grey, "dim" does not render on all terminals
DIM = 'fg 248'

# module level so tests can replace it
input = input  # noqa


def is_terminal() -> bool:
    """Return True if both stdout and stderr are attached to a terminal."""
    return all(
        hasattr(stream, 'isatty') and stream.isatty()
        for stream in (sys.stdout, sys.stderr)
    )


def get_width(default: int = 80) -> int:
    """Return the terminal width or ``default`` if it cannot be found."""
    return shutil.get_terminal_size((default, 24)).columns or default


def print_contents(
    contents: List[Tuple[str, Optional[str]]],
    padding: int = 5,
    char: str = '.',
    indent: int = 0,
) -> None:
    """Print (title, description) pairs as a dotted table of contents.

    Used for the command list in ``e3sm-bootstrap help``.
    """
    title_width = max(len(title) for title, _ in contents)
    min_width = title_width + 20 - indent - padding
    width = max(get_width(default=0), min_width)
    desc_width = width - title_width - padding - 2 - indent
    margin = ' ' * indent
    hanging = f'{margin}  {" " * (title_width + padding)}'
    for title, desc in contents:
        first, *rest = wrap(desc or '', desc_width) or ['']
        dots = char * (padding + title_width - len(title))
        print(f'{margin}{title} {dots} {first}')
        for line in rest:
            print(f'{hanging}{line}')


def supports_color() -> bool:
    """Return True if running in a terminal which can display color."""
    return (
        is_terminal()
        and sys.platform != 'win32'
        and 'ANSICON' not in os.environ
    )


def should_use_color(opts: 'Optional[Values]') -> bool:
    """Interpret the ``--color`` option."""
    color = getattr(opts, 'color', None)
    return color == 'always' or (color == 'auto' and supports_color())


def ansi_log(name: str = BOOTSTRAP_LOG, stream: str = 'stderr') -> None:
    """Turn on color for the log handlers writing to a terminal stream.

    Args:
        name: Logger name.
        stream: Either stdout or stderr.

    """
    stream_name = f'<{stream}>'
    for handler in logging.getLogger(name).handlers:
        if (
            isinstance(handler, logging.StreamHandler)
            and isinstance(handler.formatter, BootstrapLogFormatter)
            and getattr(handler.stream, 'name', None) == stream_name
        ):
            handler.formatter.configure(color=True, max_width=get_width())


def _exit_with(name: str, exc: object) -> NoReturn:
    print(EXC_EXIT.format(name=name, exc=exc), file=sys.stderr)
    sys.exit(1)


def cli_function(
    parser_function: 'Optional[Callable[[], OptionParser]]' = None,
):
    """Decorator for the command entry points.

    The decorated function is called as ``function(parser, opts, *args)``
    with the result of parsing the arguments it is called with.

    BootstrapError and ParsecError are reported as a single line on stderr
    followed by exit 1, use ``-vv`` to see the traceback. Any other
    exception is left to propagate.

    """
    def inner(wrapped_function: Callable):
        @wraps(wrapped_function)
        def wrapper(*api_args: str) -> None:
            use_color = False
            wrapped_args: list = []
            if parser_function:
                parser = parser_function()
                opts, args = parser.parse_args(list(api_args))
                use_color = should_use_color(opts)
                wrapped_args = [parser, opts, *args]

            color_init(autoreset=False, strip=not use_color)
            if use_color:
                ansi_log()
                ansi_log(stream='stdout')

            try:
                wrapped_function(*wrapped_args)
            except (BootstrapError, ParsecError) as exc:
                if e3sm.bootstrap.flags.verbosity > 1:
                    raise
                _exit_with(type(exc).__name__, exc)
            except SystemExit as exc:
                # sys.exit('message') means an error
                if exc.args and isinstance(exc.args[0], str):
                    _exit_with('ERROR', exc.args[0])
                raise
        wrapper.parser_function = parser_function  # type: ignore
        return wrapper
    return inner


def prompt(
    message: str,
    options: Union[List[str], Dict[str, object]],
    default: Optional[str] = None,
    process: Optional[Callable[[str], str]] = None,
):
    """Ask the user to pick one of the options, repeat until they do.

    Args:
        message:
            The question, without punctuation.
        options:
            The valid answers. If a dict, the value for the chosen key is
            returned.
        default:
            The answer if the user just presses <return>.
        process:
            Applied to the answer before it is checked, e.g. str.lower.

    """
    hint = f'[{default}] ' if default else ''
    question = f'{message}: {hint}{",".join(options)}? '
    while True:
        answer = input(question)
        if not answer and default is not None:
            answer = default
        if process:
            answer = process(answer)
        if answer in options:
            break
    if isinstance(options, dict):
        return options[answer]
    return answer


def confirm(message: str, default: bool = False) -> bool:
    """Ask a yes/no question, Ctrl+C or end of input aborts."""
    with handle_sigint():
        return prompt(
            message,
            {'y': True, 'n': False},
            default='y' if default else 'n',
            process=str.lower,
        )


@contextmanager
def handle_sigint(handler: Optional[Callable] = None):
    """Abort on Ctrl+C or end of input while waiting for the user.

    Ctrl+C calls ``handler`` (default: print "Aborted" and exit 1), end of
    input (Ctrl+D or a closed stdin) always aborts. The previous SIGINT
    handler is restored on exit.
    """
    prev_handler = signal.signal(signal.SIGINT, handler or abort)
    try:
        yield
    except EOFError:
        abort()
    finally:
        signal.signal(signal.SIGINT, prev_handler)


def abort(*args) -> NoReturn:
    print('\nAborted')
    sys.exit(1)
