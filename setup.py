#!/usr/bin/env python
# coding=utf-8

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

import codecs
import re
from os.path import join, dirname, abspath

from setuptools import setup, find_namespace_packages

here = abspath(dirname(__file__))


def read(*parts):
    with codecs.open(join(here, *parts), 'r') as fp:
        return fp.read()


def find_version(*file_paths):
    version_file = read(*file_paths)
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]",
                              version_file, re.M)
    if version_match:
        return version_match.group(1)
    raise RuntimeError("Unable to find version string.")


install_requires = [
    'ansimarkup>=1.0.0',
    'colorama>=0.4,<1',
    'jinja2>=3.0',
    'metomi-isodatetime>=1!3.0.0',
    'psutil>=5.6.0',
    'requests>=2.25',
    'packaging',
]
tests_require = [
    'coverage>=5.0.0',
    'flake8>=3.0.0',
    'pytest-cov>=2.8.0',
    'pytest>=6',
]

extra_requires = {
    'tests': tests_require,
    'all': [],
}
extra_requires['all'] = (
    tests_require
    + list({
        req
        for reqs in extra_requires.values()
        for req in reqs
    })
)

commands = {
    'install-libs': 'e3sm.bootstrap.scripts.install_libs:main',
    'cime-config': 'e3sm.bootstrap.scripts.cime_config:main',
    'create-case': 'e3sm.bootstrap.scripts.create_case:main',
    'config': 'e3sm.bootstrap.scripts.config:main',
}


setup(
    name='e3sm-bootstrap',
    version=find_version("e3sm", "bootstrap", "__init__.py"),
    description=(
        'Build the E3SM third-party libraries and generate the CIME'
        ' configuration for a workstation'
    ),
    long_description=open('README.md').read(),
    long_description_content_type="text/markdown",
    license='GPL-3.0-or-later',
    python_requires='>=3.12',
    packages=find_namespace_packages(include=["e3sm.*"]),
    package_data={
        'e3sm.bootstrap': [
            'etc/templates/*.j2',
        ]
    },
    install_requires=install_requires,
    tests_require=tests_require,
    extras_require=extra_requires,
    entry_points={
        'console_scripts': [
            'e3sm-bootstrap=e3sm.bootstrap.scripts.e3sm_bootstrap:main',
        ],
        'e3sm.bootstrap.command': [
            f'{name}={target}' for name, target in commands.items()
        ],
    },
)
