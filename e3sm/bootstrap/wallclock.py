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
"""Wall clock related utilities."""

from datetime import datetime

from metomi.isodatetime.timezone import (
    TimeZoneFormatMode,
    get_local_time_zone_format,
)


DATE_FORMAT = "%Y-%m-%d"
DATE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def get_current_date_string() -> str:
    """Return today's date in the local time zone (YYYY-MM-DD).

    This is the date stamp used in default E3SM case names.
    """
    return datetime.now().strftime(DATE_FORMAT)


def get_time_string(date_time: datetime) -> str:
    """Return an ISO8601 string for a local date-time.

    The local time zone is appended, ``date_time`` itself is assumed to be
    in local time.
    """
    return date_time.strftime(DATE_TIME_FORMAT) + get_local_time_zone_format(
        TimeZoneFormatMode.extended)


def get_time_string_from_unix_time(unix_time: float) -> str:
    """Convert seconds since the Unix epoch to a local ISO8601 string."""
    return get_time_string(datetime.fromtimestamp(unix_time))
