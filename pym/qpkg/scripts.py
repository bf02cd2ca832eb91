# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from . import QPKG_VERSION
from .errors import QpkgError
from .tty import colorize, Unbuffered
import logging
import sys
import traceback

def __build(args, config):
    from .cmds.build import doBuild
    doBuild(args, config)
    return 0

def __remove(args, config):
    from .cmds.misc import doRemove
    doRemove(args, config)
    return 0

def __genPatch(args, config):
    from .cmds.misc import doGenPatch
    doGenPatch(args, config)
    return 0

availableCommands = {
    "remove"    : __remove,
    "gen-patch" : __genPatch,
}

def catchErrors(fun, *args, **kwargs):
    try:
        ret = fun(*args, **kwargs)
    except BrokenPipeError:
        # explicitly close stderr to suppress further error messages
        sys.stderr.close()
        ret = 0
    except QpkgError as e:
        print(e, file=sys.stderr)
        ret = e.returncode
    except KeyboardInterrupt:
        ret = 2
    except ImportError as e:
        if e.name:
            print(colorize("Python module '{}' seems to be missing. ".format(e.name) +
                           "Please check your installation...", "31;1"),
                  file=sys.stderr)
        else:
            print(colorize(str(e) + " Please check your installation...", "31;1"),
                  file=sys.stderr)
        ret = 3
    except Exception:
        print(colorize("An internal Exception has occured. This should not have happenend.",
                       "31;1"), file=sys.stderr)
        print("qpkg version", QPKG_VERSION, file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        ret = 3

    return ret

def main(argv):
    from .cmds.build import parseArgs, setupOutput
    from .config import Config

    args = parseArgs(argv)
    setupOutput(args)
    config = Config.load(args.config)
    cmd = availableCommands.get(args.ops[0], __build)
    return cmd(args, config)

def qpkg(argv=None):
    origSysStdOut = sys.stdout
    origSysStdErr = sys.stderr
    logging.disable(logging.ERROR)

    # Prevent any buffering. Even on a tty Python is doing line buffering.
    sys.stdout = Unbuffered(sys.stdout)
    sys.stderr = Unbuffered(sys.stderr)

    try:
        ret = catchErrors(main, sys.argv[1:] if argv is None else argv)
    finally:
        sys.stdout = origSysStdOut
        sys.stderr = origSysStdErr

    return ret

if __name__ == '__main__':
    sys.exit(qpkg())
