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
"""Fetch and unpack upstream source tarballs."""

from contextlib import suppress
import os
import tarfile

import requests

from e3sm.bootstrap import LOG
from e3sm.bootstrap.exceptions import DownloadError, InstallError


# (connect, read) timeouts in seconds
TIMEOUT = (30, 300)
CHUNK_SIZE = 1024 * 1024
PARTIAL_SUFFIX = '.part'


def download(url: str, dest: str, timeout=TIMEOUT) -> str:
    """Download url to the file dest unless dest already exists.

    The file is streamed to "<dest>.part" and renamed on completion, so an
    interrupted or failed download never leaves a partial tarball at dest.

    Returns:
        dest

    Raises:
        DownloadError

    """
    if os.path.isfile(dest):
        LOG.debug(f'Using existing download {dest}')
        return dest
    LOG.info(f'Downloading {url}')
    partial = dest + PARTIAL_SUFFIX
    try:
        with requests.get(
            url, stream=True, timeout=timeout, allow_redirects=True
        ) as resp:
            resp.raise_for_status()
            with open(partial, 'wb') as handle:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    handle.write(chunk)
    except (requests.exceptions.RequestException, OSError) as exc:
        _remove(partial)
        raise DownloadError(url, exc) from None
    except BaseException:
        # e.g. KeyboardInterrupt part way through
        _remove(partial)
        raise
    os.replace(partial, dest)
    LOG.debug(f'Saved {dest}')
    return dest


def _remove(path: str) -> None:
    with suppress(FileNotFoundError):
        os.unlink(path)


def extract(tarball: str, dest_dir: str) -> None:
    """Unpack a (compressed) tarball into dest_dir.

    Raises:
        InstallError: If the archive is corrupt or unsafe.

    """
    LOG.info(f'Extracting {os.path.basename(tarball)}')
    try:
        with tarfile.open(tarball, mode='r:*') as tarhandle:
            tarhandle.extractall(dest_dir, filter='data')
    except (tarfile.TarError, OSError) as exc:
        raise InstallError(
            f'Could not extract {tarball}: {exc}'
            '\nRemove the file to download it again.'
        ) from None
