# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from ..errors import BuildError, QpkgError
from ..finalize import finalizeRecipe, getSourceDir
from ..input import RecipeSet
from ..invoker import Invoker
from ..stages import DEV_PATCH
from ..state import Manifest
from ..sysroot import removePackage
from ..tty import stepMessage, log, EXECUTED, SKIPPED, WARNING, NORMAL
from ..utils import makeDirs, runInEventLoop
import os, os.path

def doRemove(args, config):
    if args.host:
        raise BuildError("Host packages are not installed into the sysroot")
    sysroot = config.getSysroot()
    for name in args.packages:
        if removePackage(sysroot, Manifest(config.getMetaDir(), name)):
            stepMessage(name, "REMOVE", sysroot, EXECUTED, NORMAL)
        else:
            stepMessage(name, "REMOVE", "skipped (not installed)", SKIPPED, NORMAL)

async def genPatch(invoker, recipes, config, name, host):
    """Write the changes in the work directory of a package as patch.

    Returns the path of the patch or None if there are no changes.
    """
    recipe = recipes.getRecipe(name, host)
    _, destDir, rootSrcDir = config.getPackageDirs(name, host)
    final = finalizeRecipe(recipe, recipes.getTemplates(), config, rootSrcDir, destDir)
    workDir = getSourceDir(final, rootSrcDir)
    if not os.path.isdir(os.path.join(workDir, ".git")):
        raise BuildError("No development repository in '{}'".format(workDir),
            help="Prepare the package with '--dev' first.")

    await invoker.checkCommand(["git", "add", "-A"], cwd=workDir)
    diff = await invoker.checkOutputCommand(["git", "diff", "--cached"], cwd=workDir)
    if not diff.strip():
        return None

    patchesDir = recipes.getPatchesDir(name, host)
    makeDirs(patchesDir)
    path = os.path.join(patchesDir, DEV_PATCH)
    try:
        with open(path, "w", encoding="utf8") as f:
            f.write(diff)
    except OSError as e:
        raise BuildError("Failed to write {}: {}".format(path, str(e)))
    return path

def doGenPatch(args, config):
    recipes = RecipeSet(config)
    invoker = Invoker()

    async def run():
        for name in args.packages:
            try:
                path = await genPatch(invoker, recipes, config, name, args.host)
            except QpkgError as e:
                e.pushFrame(name)
                raise
            if path is None:
                log("{}: no changes".format(name), WARNING)
            else:
                stepMessage(name, "GEN-PATCH", path, EXECUTED, NORMAL)

    runInEventLoop(run())
