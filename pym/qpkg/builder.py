# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .errors import QpkgError, ParseError
from .finalize import finalizeRecipe
from .input import STAGES, applyTemplate
from .stages import Package, StageRunner
from .state import Manifest
from .sysroot import syncPackage
from .tty import stepMessage, EXECUTED, SKIPPED, INFO, NORMAL
from .utils import makeDirs
import os.path

HOST_BIN_DIRS = ("bin", "usr/bin", "usr/local/bin")
HOST_SHARE_DIRS = ("share", "usr/share", "usr/local/share")

def addUnique(ret, entries):
    for e in entries:
        if e not in ret: ret.append(e)


class WorkItem:
    """Entry of the dependency walk stack.

    Every package is pushed twice: unexpanded to schedule its dependencies
    and expanded to execute it after all dependencies were resolved.
    ``required`` marks packages that some other package depends on. They
    always run all stages, even if the user named them too.
    """

    __slots__ = ('name', 'host', 'expanded', 'userRequested', 'required',
        'replaces')

    def __init__(self, name, host, expanded=False, userRequested=False,
                 required=False, replaces=()):
        self.name = name
        self.host = host
        self.expanded = expanded
        self.userRequested = userRequested
        self.required = required
        self.replaces = tuple(replaces)

    def __repr__(self):
        return "WorkItem({!r}, host={}, expanded={}, userRequested={}, required={})".format(
            self.name, self.host, self.expanded, self.userRequested, self.required)

    def getKey(self):
        return (self.name, self.host)

    def expand(self):
        return WorkItem(self.name, self.host, True, self.userRequested,
                        self.required, self.replaces)


class ResolvedPackage:
    """Search path fragments that a resolved package exports to dependents."""

    def __init__(self, name, host, path=(), aclocalPath=()):
        self.__name = name
        self.__host = host
        self.__path = tuple(path)
        self.__aclocalPath = tuple(aclocalPath)

    def getName(self):
        return self.__name

    def isHost(self):
        return self.__host

    def getPath(self):
        return self.__path

    def getAclocalPath(self):
        return self.__aclocalPath


class PackageStore:
    """Resolved packages of the current run, keyed by (name, host)."""

    def __init__(self):
        self.__records = {}

    def __contains__(self, key):
        return key in self.__records

    def __len__(self):
        return len(self.__records)

    def add(self, record, aliases=()):
        for name in (record.getName(),) + tuple(aliases):
            self.__records[(name, record.isHost())] = record

    def get(self, name, host):
        return self.__records[(name, host)]


class Operations:
    """Requested build operations of user named packages.

    Requesting a stage implies all earlier ones. ``sync`` is independent of
    the build stages. Forcing only applies to explicitly requested stages.
    """

    def __init__(self, ops, force=False):
        ops = set(ops)
        if "rebuild" in ops:
            ops.discard("rebuild")
            ops.update(("build", "install", "sync"))
            force = True

        requested = [ s for s in STAGES if s in ops ]
        if requested:
            last = max(STAGES.index(s) for s in requested)
            self.__stages = STAGES[:last+1]
        else:
            self.__stages = ()
        self.__force = frozenset(requested) if force else frozenset()
        self.__sync = "sync" in ops

    def getStages(self):
        return self.__stages

    def getForcedStages(self):
        return self.__force

    def doSync(self):
        return self.__sync


class Builder:
    """Walk the dependency graph and build every package once.

    The walk uses an explicit stack. Dependencies are executed before their
    dependents and in declaration order. Host dependencies are resolved
    before the target dependencies of the same package.
    """

    def __init__(self, config, recipes, invoker, operations, envOverrides=(),
                 dev=False):
        self.__config = config
        self.__recipes = recipes
        self.__operations = operations
        self.__runner = StageRunner(config, invoker, envOverrides, dev)
        self.__store = PackageStore()

    def getStore(self):
        return self.__store

    async def cook(self, names, host=False):
        templates = self.__recipes.getTemplates()
        stack = [ WorkItem(name, host, userRequested=True) for name in reversed(names) ]
        requested = frozenset((name, host) for name in names)
        inProgress = set()

        def dependency(name, depHost):
            return WorkItem(name, depHost, userRequested=(name, depHost) in requested,
                            required=True)

        while stack:
            item = stack.pop()
            key = item.getKey()
            if item.expanded:
                inProgress.discard(key)
            if key in self.__store:
                if item.replaces:
                    self.__store.add(self.__store.get(*key), item.replaces)
                continue

            recipe = self.__recipes.getRecipe(item.name, item.host)
            if not item.expanded:
                if key in inProgress:
                    ancestors = [ i for i in stack if i.expanded ]
                    first = next(n for n, i in enumerate(ancestors) if i.getKey() == key)
                    chain = [ i.name for i in ancestors[first:] ] + [ item.name ]
                    raise ParseError("Cyclic dependency: " + " -> ".join(chain))
                inProgress.add(key)
                stack.append(item.expand())
                merged = applyTemplate(recipe, templates)
                for dep in reversed(merged.dependencies):
                    stack.append(dependency(dep, False))
                for dep in reversed(merged.hostDependencies):
                    stack.append(dependency(dep, True))
                continue

            alternative = recipe.binaryAlternative
            if alternative and self.__config.getPreferBinaries():
                if alternative == item.name or alternative in item.replaces:
                    raise ParseError("Cyclic binary alternative: {} -> {}"
                                        .format(item.name, alternative))
                stepMessage(item.name, "REPLACE", alternative, SKIPPED, INFO)
                stack.append(WorkItem(alternative, item.host,
                                      userRequested=item.userRequested,
                                      required=item.required,
                                      replaces=item.replaces + (item.name,)))
                continue

            try:
                await self.__execute(item, recipe, templates)
            except QpkgError as e:
                e.pushFrame(item.name)
                raise

    def __collectSearchPaths(self, recipe):
        path, aclocalPath = [], []
        deps = [ (d, False) for d in recipe.dependencies ] + \
               [ (d, True) for d in recipe.hostDependencies ]
        for name, host in deps:
            record = self.__store.get(name, host)
            addUnique(path, record.getPath())
            addUnique(aclocalPath, record.getAclocalPath())
        return path, aclocalPath

    def __makeRecord(self, item, package):
        recipe = package.getRecipe()
        path, aclocalPath = [], []
        if item.host:
            prefix = os.path.abspath(package.getDestDir())
            if recipe.exportsPath:
                path.extend(os.path.join(prefix, d) for d in HOST_BIN_DIRS)
            if recipe.exportsAclocal:
                aclocalPath.extend(os.path.join(prefix, d, "aclocal") for d in HOST_SHARE_DIRS)
        if recipe.reexportsPath:
            addUnique(path, package.getPath())
            addUnique(aclocalPath, package.getAclocalPath())
        return ResolvedPackage(item.name, item.host, path, aclocalPath)

    async def __execute(self, item, recipe, templates):
        config = self.__config
        buildDir, destDir, rootSrcDir = config.getPackageDirs(item.name, item.host)
        makeDirs(rootSrcDir)
        makeDirs(config.getArchivesDir())
        makeDirs(destDir)

        final = finalizeRecipe(recipe, templates, config, rootSrcDir, destDir)
        path, aclocalPath = self.__collectSearchPaths(final)
        package = Package(final, item.host, buildDir, destDir, rootSrcDir,
                          config.getArchivesDir(),
                          self.__recipes.getRecipeDir(item.name, item.host),
                          path, aclocalPath)

        if item.userRequested:
            await self.__runner.run(package,
                STAGES if item.required else self.__operations.getStages(),
                self.__operations.getForcedStages())
        else:
            await self.__runner.run(package)

        if not item.host:
            self.__sync(item, package)

        self.__store.add(self.__makeRecord(item, package), item.replaces)

    def __sync(self, item, package):
        config = self.__config
        manifest = Manifest(config.getMetaDir(), item.name)
        previous = manifest.load()
        if item.userRequested and self.__operations.doSync():
            pass
        elif item.userRequested and not item.required:
            return
        elif previous:
            stepMessage(item.name, "SYNC", "skipped (already installed)", SKIPPED, INFO)
            return

        stepMessage(item.name, "SYNC", config.getSysroot(), EXECUTED, NORMAL)
        files = syncPackage(package.getDestDir(), config.getSysroot(), previous,
                            config.getStripLa(),
                            config.getDocsPath() if config.getStripDocs() else None)
        manifest.save(files)
