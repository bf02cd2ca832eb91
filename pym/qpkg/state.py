# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .errors import BuildError
import os, os.path

PREPARED = "qpkg.prepared"
CONFIGURED = "qpkg.configured"
BUILT = "qpkg.built"
INSTALLED = "qpkg.installed"

class StageGate:
    """Zero-byte marker file of a completed stage."""

    def __init__(self, path):
        self.__path = path

    def getPath(self):
        return self.__path

    def exists(self):
        return os.path.exists(self.__path)

    def touch(self):
        parent = os.path.dirname(self.__path)
        try:
            os.makedirs(parent, exist_ok=True)
            with open(self.__path, "wb"):
                pass
        except OSError as e:
            raise BuildError("Failed to create {}: {}".format(self.__path, str(e)))

    def remove(self):
        try:
            os.unlink(self.__path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise BuildError("Failed to remove {}: {}".format(self.__path, str(e)))


class Manifest:
    """List of sysroot paths that a package installed.

    Stored as ``<metaDir>/<package>/FILES`` with one relative path per line.
    """

    def __init__(self, metaDir, name):
        self.__dir = os.path.join(metaDir, name)
        self.__path = os.path.join(self.__dir, "FILES")

    def getPath(self):
        return self.__path

    def load(self):
        try:
            with open(self.__path, "r", encoding="utf8") as f:
                return [ l.strip() for l in f.read().splitlines() if l.strip() ]
        except FileNotFoundError:
            return []
        except OSError as e:
            raise BuildError("Failed to read {}: {}".format(self.__path, str(e)))

    def save(self, files):
        try:
            os.makedirs(self.__dir, exist_ok=True)
            with open(self.__path, "w", encoding="utf8") as f:
                f.write("".join(name + "\n" for name in files))
        except OSError as e:
            raise BuildError("Failed to write {}: {}".format(self.__path, str(e)))

    def remove(self):
        try:
            os.unlink(self.__path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise BuildError("Failed to remove {}: {}".format(self.__path, str(e)))
