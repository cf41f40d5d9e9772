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
"""Set up the e3sm-bootstrap environment."""

import logging
import os

BOOTSTRAP_LOG = 'e3sm-bootstrap'

LOG = logging.getLogger(BOOTSTRAP_LOG)
# Start with a null handler
LOG.addHandler(logging.NullHandler())


def environ_init():
    """Initialise the environment for upstream build output."""
    # Interleave our output with the output of configure/make
    os.environ['PYTHONUNBUFFERED'] = 'true'


environ_init()

__version__ = '1.0.0.dev0'


def iter_entry_points(entry_point_name):
    """Iterate over e3sm-bootstrap entry points."""
    from importlib.metadata import entry_points
    yield from entry_points().select(group=entry_point_name)
