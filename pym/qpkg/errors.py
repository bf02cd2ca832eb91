# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .tty import colorize

class QpkgError(Exception):
    def __init__(self, slogan, kind=None, stackSlogan="", help="", returncode=1):
        self.kind = (kind + " error: ") if kind is not None else "Error: "
        self.slogan = slogan
        self.stackSlogan = stackSlogan
        self.stack = []
        self.help = help
        self.returncode = returncode

    def __str__(self):
        ret = colorize(self.kind, "31;1") + colorize(self.slogan, "31")
        if self.stack:
            ret = ret + "\n" + self.stackSlogan + ": " + "/".join(self.stack)
        if self.help:
            ret = ret + "\n" + self.help
        return ret

    def pushFrame(self, frame):
        if not self.stack or (self.stack[0] != frame):
            self.stack.insert(0, frame)

class ParseError(QpkgError):
    def __init__(self, slogan, *args, **kwargs):
        QpkgError.__init__(self, slogan, "Parse", "Processing stack", *args, **kwargs)

class BuildError(QpkgError):
    def __init__(self, slogan, *args, **kwargs):
        QpkgError.__init__(self, slogan, "Build", "Failed package", *args, **kwargs)
