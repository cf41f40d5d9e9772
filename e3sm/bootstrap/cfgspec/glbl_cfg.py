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
"""Provide a function to return the global config instance."""

from e3sm.bootstrap.cfgspec.globalcfg import GlobalConfig


def glbl_cfg(cached=True):
    """Return a GlobalConfig instance.

    Args:
        cached (bool):
            If cached create if necessary and return the singleton
            instance, else return a new instance.
    """
    return GlobalConfig.get_inst(cached=cached)
