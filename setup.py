# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from setuptools import setup, find_packages

setup(
    name = "qpkg",
    version = "0.4.0",

    # Locate the python stuff
    packages = find_packages("pym"),
    package_dir = {'' : 'pym'},

    zip_safe=False,

    # Our runtime dependencies
    python_requires = '>=3.8',
    install_requires = [
        'PyYAML',
        'schema',
        'pyparsing>=3.0',
    ],

    # Optional dependencies that are not needed by default
    extras_require = {
        'test' : [ 'pytest' ],
    },

    # Provide executables
    entry_points = {
        'console_scripts' : [
            'qpkg = qpkg.scripts:qpkg',
        ]
    },

    # Metadata for PyPI
    author = "The qpkg developers",
    description = "Cross build tool for bootstrapping sysroots",
    long_description = "\n".join(open('README.md').read().splitlines()[2:]),
    long_description_content_type = 'text/markdown',
    license = "GPLv3+",
    keywords = "qpkg cross-compilation sysroot build-automation",
    classifiers = [
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)',
        'Operating System :: POSIX',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Software Development :: Build Tools',
    ],
)
