# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from ..errors import BuildError
from ..utils import makeDirs
from abc import ABCMeta, abstractmethod
import os, os.path

TARBALL_EXTENSIONS = (".tar.xz", ".tar.gz", ".tar.bz2", ".tar.zst")

def isTarball(name):
    return name.endswith(TARBALL_EXTENSIONS)

async def extractTarball(invoker, path, destination):
    makeDirs(destination)
    await invoker.checkCommand(["tar", "-xf", path], cwd=destination)


class Scm(metaclass=ABCMeta):
    """A single source locator of a recipe.

    Sources are first fetched into a download directory. In the prepare
    stage they are unpacked into the source directory of the package.
    """

    def __init__(self, locator):
        self.__locator = locator

    def getSource(self):
        return self.__locator

    def getName(self):
        return os.path.basename(self.__locator)

    def getPath(self, downloadDir):
        """Location of the fetched source."""
        return os.path.join(downloadDir, self.getName())

    async def fetch(self, invoker, path):
        if os.path.lexists(path):
            return
        makeDirs(os.path.dirname(path))
        await self._fetch(invoker, path)

    @abstractmethod
    async def _fetch(self, invoker, path):
        pass

    async def unpack(self, invoker, path, unpackRoot, workDir):
        if isTarball(self.getName()):
            await extractTarball(invoker, path, unpackRoot)


class LocalScm(Scm):
    """Source that is already present on the local file system.

    Relative paths are taken relative to the recipe directory.
    """

    def __init__(self, locator, baseDir=None):
        super().__init__(locator)
        self.__baseDir = baseDir

    def getPath(self, downloadDir):
        return os.path.abspath(os.path.join(self.__baseDir or os.getcwd(),
                                            self.getSource()))

    async def _fetch(self, invoker, path):
        raise BuildError("Source '{}' does not exist".format(self.getSource()))
