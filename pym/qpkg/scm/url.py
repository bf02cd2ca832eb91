# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from ..errors import BuildError
from ..utils import removePath
from .scm import Scm
from urllib.parse import urlsplit
import os.path

class UrlScm(Scm):
    """Single file downloaded with wget."""

    def getName(self):
        path = urlsplit(self.getSource()).path
        return os.path.basename(path.rstrip("/")) or self.getSource().rsplit("/", 1)[-1]

    async def _fetch(self, invoker, path):
        try:
            await invoker.checkCommand(["wget", self.getSource(), "-O", path])
        except BuildError:
            # wget leaves an empty or truncated file behind
            removePath(path)
            raise
