# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from ..errors import ParseError
from ..utils import makeDirs, makeSymlink
from .scm import Scm
import os.path
import re

# <url>.git[:branch[,full]]
GIT_LOCATOR = re.compile(r"^(.*?\.git)(?::([^,]*)(,full)?)?$")

def isGitLocator(locator):
    return GIT_LOCATOR.match(locator) is not None

class GitScm(Scm):
    def __init__(self, locator, recurseSubmodules=False):
        super().__init__(locator)
        m = GIT_LOCATOR.match(locator)
        if m is None:
            raise ParseError("Invalid git source: " + locator)
        self.__url = m.group(1)
        self.__branch = m.group(2) or None
        self.__shallow = m.group(3) is None
        self.__submodules = recurseSubmodules

    def getUrl(self):
        return self.__url

    def getBranch(self):
        return self.__branch

    def isShallow(self):
        return self.__shallow

    def getName(self):
        name = os.path.basename(self.__url.rstrip("/"))
        return name[:-4] if name.endswith(".git") else name

    def getCloneCommand(self, path):
        cmd = ["git", "clone", self.__url]
        if self.__shallow:
            cmd.append("--depth=1")
        if self.__branch:
            cmd.extend(["-b", self.__branch])
        if self.__submodules:
            cmd.append("--recurse-submodules")
        cmd.append(path)
        return cmd

    async def _fetch(self, invoker, path):
        await invoker.checkCommand(self.getCloneCommand(path))

    async def unpack(self, invoker, path, unpackRoot, workDir):
        makeDirs(os.path.dirname(workDir))
        makeSymlink(os.path.abspath(path), workDir)
