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

from datetime import datetime
import re
import time

import pytest

from e3sm.bootstrap.wallclock import (
    get_current_date_string,
    get_time_string,
    get_time_string_from_unix_time,
)


@pytest.fixture
def set_timezone(monkeypatch: pytest.MonkeyPatch):
    """Set the local time zone (default UTC+19:17)."""
    def _set_timezone(time_zone: str = 'XXX-19:17') -> None:
        monkeypatch.setenv('TZ', time_zone)
        time.tzset()

    yield _set_timezone
    monkeypatch.undo()
    time.tzset()


def test_get_current_date_string():
    assert re.match(r'^\d{4}-\d{2}-\d{2}$', get_current_date_string())


def test_get_time_string(set_timezone):
    set_timezone()
    assert get_time_string(datetime(2000, 12, 13, 15, 30, 12, 123456)) == (
        '2000-12-13T15:30:12+19:17')


@pytest.mark.parametrize(
    'time_zone, expect',
    [
        ('XXX-19:17', '2016-09-09T03:26:00+19:17'),
        ('UTC', '2016-09-08T08:09:00Z'),
    ]
)
def test_get_time_string_from_unix_time(set_timezone, time_zone, expect):
    set_timezone(time_zone)
    assert get_time_string_from_unix_time(1473322140) == expect
