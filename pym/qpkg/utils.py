# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .errors import BuildError
import errno
import logging
import os
import shutil
import stat

def removePath(path):
    try:
        if os.path.lexists(path):
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                os.unlink(path)
    except OSError as e:
        raise BuildError("Error removing '"+path+"': " + str(e))

def makeDirs(path):
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise BuildError("Failed to create directory '{}': {}".format(path, str(e)))

def makeSymlink(target, linkName):
    """Create a symlink. An already existing link name is not an error."""
    try:
        os.symlink(target, linkName)
    except FileExistsError:
        pass
    except OSError as e:
        raise BuildError("Failed to symlink '{}' -> '{}': {}".format(linkName,
            target, str(e)))

def removeSysrootEntry(path):
    """Remove a file or an empty directory.

    Missing entries and directories that are still populated are tolerated.
    Everything else is fatal. Returns True if something was removed.
    """
    try:
        os.rmdir(path)
        return True
    except NotADirectoryError:
        pass
    except FileNotFoundError:
        return False
    except OSError as e:
        if e.errno == errno.ENOTEMPTY:
            return False
        raise BuildError("Failed to remove '{}': {}".format(path, str(e)))

    try:
        os.unlink(path)
        return True
    except (FileNotFoundError, NotADirectoryError):
        # a parent directory was replaced by a file
        return False
    except OSError as e:
        raise BuildError("Failed to remove '{}': {}".format(path, str(e)))

def walkTree(root):
    """Walk a directory tree in a stable, depth-first order.

    Yields ``(relPath, dirEntry)`` tuples. Directories are yielded before
    their content. Symlinks to directories are not followed.
    """
    def scan(path, prefix):
        try:
            with os.scandir(path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise BuildError("Cannot list directory '{}': {}".format(path, str(e)))
        for entry in entries:
            relPath = os.path.join(prefix, entry.name) if prefix else entry.name
            yield relPath, entry
            if entry.is_dir(follow_symlinks=False):
                yield from scan(entry.path, relPath)

    yield from scan(root, "")

def copyFile(src, dst):
    """Copy a regular file, overwriting write protected destinations.

    A directory at the destination is removed first.
    """
    try:
        if os.path.lexists(dst):
            if os.path.islink(dst):
                os.unlink(dst)
            elif os.path.isdir(dst):
                removePath(dst)
            else:
                mode = os.stat(dst).st_mode
                os.chmod(dst, stat.S_IMODE(mode) | stat.S_IWUSR | stat.S_IWGRP)
        shutil.copyfile(src, dst)
        shutil.copymode(src, dst)
    except OSError as e:
        raise BuildError("Failed to copy '{}' to '{}': {}".format(src, dst, str(e)))

def getThreadCount(configured):
    if configured:
        return configured
    ret = os.cpu_count()
    if not ret:
        logging.getLogger(__name__).info("Cannot detect CPU count, using one thread")
        ret = 1
    return ret

def runInEventLoop(coro):
    """Backwards compatibility stub for asyncio.run()"""
    import asyncio

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(coro)
    finally:
        asyncio.set_event_loop(None)
        loop.close()
