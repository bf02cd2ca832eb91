# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .scm import Scm, LocalScm, isTarball
from .git import GitScm, isGitLocator
from .url import UrlScm

def getScm(locator, recurseSubmodules=False, baseDir=None):
    if isGitLocator(locator):
        return GitScm(locator, recurseSubmodules)
    elif locator.startswith("http"):
        return UrlScm(locator)
    else:
        return LocalScm(locator, baseDir)
