# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .errors import BuildError
from .utils import copyFile, makeDirs, makeSymlink, removePath, removeSysrootEntry, \
    walkTree
import logging
import os, os.path

log = logging.getLogger(__name__)

def isExcluded(relPath, isDir, stripLa=False, docsPath=None):
    """Check if a destination entry must not be installed into the sysroot."""
    if stripLa and not isDir and relPath.endswith(".la"):
        return True
    if docsPath and (relPath == docsPath or relPath.startswith(docsPath + "/")):
        return True
    return False

def removeStale(sysroot, previous, current):
    """Remove entries of the previous manifest that are not installed anymore.

    The previous manifest is processed backwards so that directory content is
    removed before the directory itself. Directories that are still populated
    are kept. Returns the list of removed entries.
    """
    keep = frozenset(current)
    removed = []
    for name in reversed(previous):
        if name in keep: continue
        if removeSysrootEntry(os.path.join(sysroot, name)):
            removed.append(name)
    return removed

def syncPackage(destDir, sysroot, previous=(), stripLa=False, docsPath=None):
    """Install the destination tree of a package into the sysroot.

    Directories are created, symlinks recreated and regular files copied over
    existing ones. Entries of ``previous`` that are not part of the new tree
    anymore are removed from the sysroot. Returns the new manifest.
    """
    if not os.path.isdir(destDir):
        raise BuildError("Destination directory '{}' does not exist".format(destDir))

    makeDirs(sysroot)
    files = []
    for relPath, entry in walkTree(destDir):
        isDir = entry.is_dir(follow_symlinks=False)
        if isExcluded(relPath, isDir, stripLa, docsPath):
            continue

        target = os.path.join(sysroot, relPath)
        if entry.is_symlink():
            makeSymlink(os.readlink(entry.path), target)
        elif isDir:
            if os.path.lexists(target) and not os.path.isdir(target):
                removePath(target)
            makeDirs(target)
        else:
            copyFile(entry.path, target)
        files.append(relPath)

    removed = removeStale(sysroot, list(previous), files)
    log.debug("Synced %d entries from %s, removed %d stale entries", len(files),
              destDir, len(removed))
    return files

def removePackage(sysroot, manifest):
    """Remove every entry of an installed package from the sysroot.

    Returns False if the package was not installed.
    """
    files = manifest.load()
    if not files:
        return False
    for name in reversed(files):
        removeSysrootEntry(os.path.join(sysroot, name))
    manifest.remove()
    return True
