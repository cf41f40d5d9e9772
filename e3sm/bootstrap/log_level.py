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

"""Utilities for configuring logging level via the CLI."""

import logging
from typing import Dict, Union, TYPE_CHECKING

if TYPE_CHECKING:
    import os


ENV_VERBOSE = 'E3SM_BOOTSTRAP_VERBOSE'
ENV_DEBUG = 'E3SM_BOOTSTRAP_DEBUG'


def verbosity_to_log_level(verb: int) -> int:
    """Convert verbosity to log severity level."""
    if verb < 0:
        return logging.WARNING
    if verb > 0:
        return logging.DEBUG
    return logging.INFO


def env_to_verbosity(env: 'Union[Dict, os._Environ]') -> int:
    """Extract verbosity from environment variables.

    Examples:
        >>> env_to_verbosity({})
        0
        >>> env_to_verbosity({'E3SM_BOOTSTRAP_VERBOSE': 'true'})
        1
        >>> env_to_verbosity({'E3SM_BOOTSTRAP_DEBUG': 'TRUE'})
        2

    """
    return (
        2 if env.get(ENV_DEBUG, '').lower() == 'true'
        else 1 if env.get(ENV_VERBOSE, '').lower() == 'true'
        else 0
    )
