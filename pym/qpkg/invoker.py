# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .errors import BuildError
from .tty import getVerbosity, TRACE
from shlex import quote
import asyncio
import io
import os
import subprocess
import sys

__all__ = ['Invoker', 'CmdFailedError']

SHELL = "/bin/sh"

class CmdFailedError(BuildError):
    def __init__(self, cmd, returncode):
        super().__init__("Command '{}' returned exit status {}".format(cmd, returncode))
        self.cmd = cmd
        self.exitStatus = returncode

class FinishedProcess:
    def __init__(self, returncode, stdout):
        self.returncode = returncode
        self.stdout = stdout

class Invoker:
    """Sequential execution of external tools.

    Every command is awaited before the next one can be started. The
    environment of a command is the inherited process environment updated by
    the ``env`` mapping of the particular call.
    """

    def __init__(self, trace=None):
        self.__env = os.environ.copy()
        self.__trace = (getVerbosity() >= TRACE) if trace is None else trace

    def getEnv(self):
        return self.__env.copy()

    async def __runCommand(self, args, cwd, env=None, stdout=None):
        cmd = " ".join(quote(a) for a in args)
        self.trace(cmd)

        _env = self.__env.copy()
        if env is not None: _env.update(env)

        try:
            proc = await asyncio.create_subprocess_exec(*args, cwd=cwd,
                env=_env, stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE if stdout else None)
        except OSError as e:
            raise BuildError("Cannot execute '{}': {}".format(cmd, str(e)),
                             returncode=127)

        stdoutBuf, _ = await proc.communicate()
        if proc.returncode != 0:
            raise CmdFailedError(cmd, proc.returncode)

        if stdout:
            stdoutBuf = io.TextIOWrapper(io.BytesIO(stdoutBuf), errors='replace').read()
        return FinishedProcess(proc.returncode, stdoutBuf)

    async def checkCommand(self, args, cwd=None, env=None):
        await self.__runCommand(args, cwd, env=env)

    async def checkShell(self, line, cwd=None, env=None):
        """Run a command line through the shell. Fails on non-zero exit."""
        cmd = [SHELL, "-c", line]
        try:
            await self.__runCommand(cmd, cwd, env=env)
        except CmdFailedError as e:
            raise CmdFailedError(line, e.exitStatus) from None

    async def checkOutputCommand(self, args, cwd=None, env=None):
        ret = await self.__runCommand(args, cwd, env=env, stdout=True)
        return ret.stdout

    def trace(self, *args):
        if self.__trace:
            print("+", *args, file=sys.stderr)
