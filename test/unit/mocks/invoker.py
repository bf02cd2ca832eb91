# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from qpkg.invoker import CmdFailedError

class MockInvoker:
    """Record commands instead of executing them.

    Every command is stored as (args, cwd, env) tuple. Shell command lines
    are additionally collected in ``lines``. Lines listed in ``failOn`` raise
    like a failed command.
    """

    def __init__(self, env=None, output="", failOn=()):
        self.commands = []
        self.lines = []
        self.output = output
        self.failOn = set(failOn)
        self.__env = env if env is not None else { "PATH" : "/usr/bin:/bin" }

    def getEnv(self):
        return dict(self.__env)

    async def checkCommand(self, args, cwd=None, env=None):
        self.commands.append((list(args), cwd, env))
        if " ".join(args) in self.failOn:
            raise CmdFailedError(" ".join(args), 1)

    async def checkShell(self, line, cwd=None, env=None):
        self.lines.append(line)
        await self.checkCommand(["/bin/sh", "-c", line], cwd, env)
        if line in self.failOn:
            raise CmdFailedError(line, 1)

    async def checkOutputCommand(self, args, cwd=None, env=None):
        await self.checkCommand(args, cwd, env)
        return self.output

    def trace(self, *args):
        pass

    def linesOf(self, prefix):
        return [ l for l in self.lines if l.startswith(prefix) ]

    def programs(self):
        return [ args[0] for args, _, _ in self.commands ]
