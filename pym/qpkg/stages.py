# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .errors import BuildError
from .finalize import getSourceDir
from .input import STAGES
from .scm import getScm
from .state import StageGate, PREPARED, CONFIGURED, BUILT, INSTALLED
from .tty import stepMessage, stepAction, EXECUTED, SKIPPED, WARNING, \
    NORMAL, INFO, DEBUG
from .utils import makeDirs, removePath, walkTree
import os, os.path

GATES = {
    "configure" : CONFIGURED,
    "build" : BUILT,
    "install" : INSTALLED,
}

PATCH_EXTENSIONS = (".patch", ".diff")

# Written by gen-patch. Always applied last.
DEV_PATCH = "qpkg-dev.patch"

def joinSearchPath(entries, inherited=""):
    return ":".join(list(entries) + ([inherited] if inherited else []))

def findPatches(patchesDir):
    """Return the (relPath, absPath) list of patches in application order."""
    if not os.path.isdir(patchesDir):
        return []
    ret = [ (relPath, os.path.abspath(entry.path))
            for relPath, entry in walkTree(patchesDir)
            if entry.is_file() and entry.name.endswith(PATCH_EXTENSIONS) ]
    return sorted(ret, key=lambda p: os.path.basename(p[1]) == DEV_PATCH)


class Package:
    """A finalized recipe bound to the directories of the current run."""

    def __init__(self, recipe, host, buildDir, destDir, rootSrcDir, archivesDir,
                 recipeDir, path=(), aclocalPath=()):
        self.__recipe = recipe
        self.__host = host
        self.__buildDir = buildDir
        self.__destDir = destDir
        self.__rootSrcDir = rootSrcDir
        self.__archivesDir = archivesDir
        self.__recipeDir = recipeDir
        self.__path = tuple(path)
        self.__aclocalPath = tuple(aclocalPath)

    def getName(self):
        return self.__recipe.name

    def getRecipe(self):
        return self.__recipe

    def isHost(self):
        return self.__host

    def getBuildDir(self):
        return self.__buildDir

    def getDestDir(self):
        return self.__destDir

    def getRootSrcDir(self):
        return self.__rootSrcDir

    def getWorkDir(self):
        return getSourceDir(self.__recipe, self.__rootSrcDir)

    def getUnpackDir(self):
        """Directory where archives are extracted."""
        if self.__recipe.srcUnpackDir:
            return os.path.abspath(self.__recipe.srcUnpackDir)
        return self.__rootSrcDir

    def getDownloadDir(self):
        if self.__recipe.srcUnpackDir:
            return os.path.abspath(self.__recipe.srcUnpackDir)
        return self.__archivesDir

    def getPatchesDir(self):
        return os.path.join(self.__recipeDir, "patches")

    def getScms(self):
        return [ getScm(src, self.__recipe.recurseSubmodules, self.__recipeDir)
                 for src in self.__recipe.sources ]

    def getPath(self):
        return self.__path

    def getAclocalPath(self):
        return self.__aclocalPath


class StageRunner:
    """Execute the gated stages of a package.

    Every stage is skipped if its gate file exists. Forced stages remove
    their gate (or the whole build directory in case of ``configure``)
    before the check.
    """

    def __init__(self, config, invoker, envOverrides=(), dev=False):
        self.__config = config
        self.__invoker = invoker
        self.__envOverrides = tuple(envOverrides)
        self.__dev = dev
        self.__globalEnv = {}

    def __getGlobalEnv(self, host):
        env = self.__globalEnv.get(host)
        if env is None:
            env = self.__globalEnv[host] = self.__config.getGlobalEnv(host,
                self.__envOverrides)
        return env

    def getEnv(self, package, stage):
        """Compute the environment of the commands of a stage.

        Later entries override earlier ones: stage environment, then the global
        environment of the build flavour, then the search paths.
        """
        inherited = self.__invoker.getEnv()
        env = { "LC_ALL" : "C" }
        env.update(package.getRecipe().getStage(stage).env)
        env.update(self.__getGlobalEnv(package.isHost()))
        if stage != "prepare":
            env["QPKG_SYSROOT_DIR"] = self.__config.getSysroot()
        env["PATH"] = joinSearchPath(package.getPath(), inherited.get("PATH", ""))
        env["ACLOCAL_PATH"] = joinSearchPath(package.getAclocalPath(),
                                             inherited.get("ACLOCAL_PATH", ""))
        return env

    async def run(self, package, stages=STAGES, force=()):
        for stage in STAGES:
            if stage not in stages: continue
            if stage == "prepare":
                await self.prepare(package, stage in force)
            else:
                await self.runStage(package, stage, stage in force)

    async def fetch(self, package):
        downloadDir = package.getDownloadDir()
        for scm in package.getScms():
            path = scm.getPath(downloadDir)
            if os.path.lexists(path):
                stepMessage(package.getName(), "FETCH", scm.getSource(), SKIPPED, DEBUG)
                continue
            with stepAction(package.getName(), "FETCH", scm.getSource(), NORMAL):
                await scm.fetch(self.__invoker, path)

    async def prepare(self, package, force=False):
        name = package.getName()
        recipe = package.getRecipe()
        rootSrcDir = package.getRootSrcDir()
        gate = StageGate(os.path.join(rootSrcDir, PREPARED))
        if force:
            stepMessage(name, "PREPARE", "forced", WARNING, INFO)
            gate.remove()
        if gate.exists():
            stepMessage(name, "PREPARE", "skipped (already prepared)", SKIPPED, INFO)
            return

        await self.fetch(package)

        stepMessage(name, "PREPARE", rootSrcDir, EXECUTED, NORMAL)
        removePath(rootSrcDir)
        makeDirs(rootSrcDir)

        workDir = package.getWorkDir()
        if not recipe.noAutoUnpack:
            downloadDir = package.getDownloadDir()
            for scm in package.getScms():
                with stepAction(name, "UNPACK", scm.getName(), INFO):
                    await scm.unpack(self.__invoker, scm.getPath(downloadDir),
                                     package.getUnpackDir(), workDir)
        makeDirs(workDir)

        if self.__dev:
            await self.__initRepository(name, workDir)

        if not recipe.noAutoPatch:
            for relPath, path in findPatches(package.getPatchesDir()):
                with stepAction(name, "PATCH", relPath, NORMAL):
                    await self.__invoker.checkCommand(["patch", "-Np1", "-i", path],
                                                      cwd=workDir)
                # keep development changes out of the history
                if self.__dev and os.path.basename(path) != DEV_PATCH:
                    await self.__commit(workDir, "qpkg: apply " + relPath)

        await self.__runCommands(package, "prepare", workDir)
        gate.touch()

    async def __initRepository(self, name, workDir):
        gitDir = os.path.join(workDir, ".git")
        if os.path.exists(gitDir):
            return
        with stepAction(name, "GIT", "initialize development repository", INFO):
            try:
                await self.__invoker.checkCommand(["git", "init", "-q"], cwd=workDir)
                await self.__commit(workDir, "qpkg: initial import")
            except BuildError:
                removePath(gitDir)
                raise

    async def __commit(self, workDir, message):
        await self.__invoker.checkCommand(["git", "add", "-A"], cwd=workDir)
        await self.__invoker.checkCommand(["git", "-c", "user.name=qpkg",
            "-c", "user.email=qpkg@localhost", "commit", "-q", "--allow-empty",
            "-m", message], cwd=workDir)

    async def runStage(self, package, stage, force=False):
        name = package.getName()
        buildDir = package.getBuildDir()
        gate = StageGate(os.path.join(buildDir, GATES[stage]))
        if force:
            stepMessage(name, stage.upper(), "forced", WARNING, INFO)
            if stage == "configure":
                removePath(buildDir)
            else:
                gate.remove()
        if gate.exists():
            stepMessage(name, stage.upper(), "skipped (already done)", SKIPPED, INFO)
            return

        stepMessage(name, stage.upper(), buildDir, EXECUTED, NORMAL)
        makeDirs(buildDir)
        await self.__runCommands(package, stage, buildDir)
        gate.touch()

    async def __runCommands(self, package, stage, cwd):
        env = self.getEnv(package, stage)
        for line in package.getRecipe().getStage(stage).getCommands():
            await self.__invoker.checkShell(line, cwd=cwd, env=env)
