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
"""Log formatting for the e3sm-bootstrap commands.

Messages from configure and make are long, so lines are only wrapped at a
generous width and continuation lines are indented to keep them readable
between the upstream build output.
"""

import logging
import sys
import textwrap
from typing import Optional

from ansimarkup import parse as cparse, strip as cstrip

from e3sm.bootstrap.wallclock import get_time_string_from_unix_time


class BootstrapLogFormatter(logging.Formatter):
    """Log formatter which prefixes an ISO8601 time and the level name.

    Markup in messages (e.g. ``<green>✓</green>``) is rendered when color
    is on and stripped otherwise.
    """

    COLORS = {
        'CRITICAL': '<red><bold>{0}</bold></red>',
        'ERROR': '<red>{0}</red>',
        'WARNING': '<yellow>{0}</yellow>',
        'INFO': '<green>{0}</green>',
        'DEBUG': '<fg #888888>{0}</fg #888888>'
    }

    # wide enough that configure command lines stay on one line
    MAX_WIDTH = 999

    INDENT = '    '

    def __init__(
        self,
        timestamp: bool = True,
        color: bool = False,
        max_width: Optional[int] = None,
        dev_info: bool = False
    ) -> None:
        fmt = '%(asctime)s %(levelname)-2s - '
        if dev_info:
            fmt += '[%(module)s:%(lineno)d] - '
        super().__init__(fmt + '%(message)s')
        self.timestamp = True
        self.color = False
        self.max_width = self.MAX_WIDTH
        self.configure(timestamp, color, max_width)

    def configure(
        self,
        timestamp: Optional[bool] = None,
        color: Optional[bool] = None,
        max_width: Optional[int] = None,
    ) -> None:
        """Change any of the settings given, leave the others alone."""
        if timestamp is not None:
            self.timestamp = timestamp
        if color is not None:
            self.color = color
        if max_width is not None:
            self.max_width = max_width

    def format(self, record):  # noqa: A003 (method name not local)
        text = super().format(record)
        if not self.timestamp:
            # the time string contains no spaces
            text = text.split(' ', 1)[1]
        if not self.color:
            text = cstrip(text)
        elif record.levelname in self.COLORS:
            text = cparse(self.COLORS[record.levelname].format(text))
        return self._indent(text)

    def _indent(self, text: str) -> str:
        """Indent every line after the first, wrapping at max_width."""
        if not self.max_width:
            return f'\n{self.INDENT}'.join(text.splitlines())
        lines = []
        for num, part in enumerate(text.splitlines()):
            lines.extend(textwrap.wrap(
                part,
                width=self.max_width,
                initial_indent=self.INDENT if num else '',
                subsequent_indent=self.INDENT,
            ))
        return '\n'.join(lines)

    def formatTime(self, record, datefmt=None):
        return get_time_string_from_unix_time(record.created)


def setup_segregated_log_streams(
    logger: logging.Logger, stderr_handler: logging.StreamHandler
) -> None:
    """Send debug and info messages to stdout, warnings and above to stderr.

    Build progress then interleaves with the configure/make output on
    stdout while problems still reach stderr.

    Args:
        logger: The logger to add the stdout handler to.
        stderr_handler: The handler already writing to stderr.

    """
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(lambda rec: rec.levelno < logging.WARNING)
    if stderr_handler.formatter:
        stdout_handler.setFormatter(stderr_handler.formatter)
    logger.addHandler(stdout_handler)
    stderr_handler.setLevel(logging.WARNING)
