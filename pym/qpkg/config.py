# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .errors import ParseError
from .tty import Warn
from .utils import getThreadCount
from types import MappingProxyType
import os, os.path
import schema
import shutil
try:
    from yaml import load as yamlLoad, CSafeLoader as YamlSafeLoader
except ImportError:
    from yaml import load as yamlLoad, SafeLoader as YamlSafeLoader

DEFAULT_CONFIG_PATHS = [ "qpkg.yaml", "/etc/qpkg.yaml" ]

# Scalars in free-form tables are always handled as strings
SCALAR = schema.Or(str, schema.And(schema.Or(int, float, bool), schema.Use(str)))

FLAVOUR_SCHEMA = schema.Schema({
    schema.Optional('cc', default="cc") : str,
    schema.Optional('cxx', default="c++") : str,
    schema.Optional('cflags', default="") : str,
    schema.Optional('cxxflags', default="") : str,
    schema.Optional('ldflags', default="") : str,
    schema.Optional(str) : SCALAR,
})

CONFIG_SCHEMA = schema.Schema({
    'general' : {
        'target' : str,
        'sysroot' : str,
        'recipesDir' : str,
        'hostRecipesDir' : str,
        'metaDir' : str,
        schema.Optional('buildRoot', default="") : str,
        schema.Optional('threads', default=0) : schema.And(int, lambda x: x >= 0,
            error="'threads' must not be negative"),
        schema.Optional('preferBinaries', default=True) : bool,
        schema.Optional('stripDocs', default=False) : bool,
        schema.Optional('docsPath', default="usr/share/doc") : str,
        schema.Optional('stripLa', default=False) : bool,
        schema.Optional('templates') : str,
        schema.Optional(str) : SCALAR,
    },
    schema.Optional('host', default={}) : FLAVOUR_SCHEMA,
    schema.Optional('target', default={}) : FLAVOUR_SCHEMA,
})

FLAVOUR_KEYS = frozenset(['cc', 'cxx', 'cflags', 'cxxflags', 'ldflags'])
GENERAL_KEYS = frozenset(['target', 'sysroot', 'recipesDir', 'hostRecipesDir',
    'metaDir', 'buildRoot', 'threads', 'preferBinaries', 'stripDocs', 'docsPath',
    'stripLa', 'templates'])

def loadYaml(path, yamlSchema, default={}):
    try:
        with open(path, "r", encoding='utf8') as f:
            try:
                data = yamlLoad(f.read(), Loader=YamlSafeLoader)
            except Exception as e:
                raise ParseError("Error while parsing {}: {}".format(path, str(e)))
    except FileNotFoundError:
        raise ParseError("File not found: " + path)
    except OSError as e:
        raise ParseError("Error loading yaml file: " + str(e))

    if data is None: data = default
    try:
        return yamlSchema.validate(data)
    except schema.SchemaError as e:
        raise ParseError("Error while validating {}: {}".format(path, str(e)))


class BuildFlavour:
    """Compiler settings of either the host or the target."""

    def __init__(self, data):
        self.__cc = data.get("cc", "cc")
        self.__cxx = data.get("cxx", "c++")
        self.__cflags = data.get("cflags", "")
        self.__cxxflags = data.get("cxxflags", "")
        self.__ldflags = data.get("ldflags", "")
        self.__extra = MappingProxyType({ k : v for k, v in data.items()
                                          if k not in FLAVOUR_KEYS })

    def getCC(self):
        return self.__cc

    def getCXX(self):
        return self.__cxx

    def getFlags(self):
        """Return compiler flags as list of environment variable pairs."""
        ret = []
        if self.__cflags: ret.append(("CFLAGS", self.__cflags))
        if self.__cxxflags: ret.append(("CXXFLAGS", self.__cxxflags))
        if self.__ldflags: ret.append(("LDFLAGS", self.__ldflags))
        return ret

    def getExtraEnv(self):
        return self.__extra


class Config:
    """Immutable build configuration.

    Built once at startup and handed to every component. All paths are
    absolute.
    """

    def __init__(self, data, baseDir):
        general = data["general"]

        def absPath(p):
            return os.path.normpath(os.path.join(baseDir, os.path.expanduser(p)))

        self.__target = general["target"]
        self.__sysroot = absPath(general["sysroot"])
        self.__recipesDir = absPath(general["recipesDir"])
        self.__hostRecipesDir = absPath(general["hostRecipesDir"])
        self.__metaDir = absPath(general["metaDir"])
        buildRoot = general["buildRoot"]
        self.__buildRoot = absPath(buildRoot) if buildRoot not in ("", ".") \
                           else os.path.normpath(baseDir)
        self.__threads = getThreadCount(general["threads"])
        self.__preferBinaries = general["preferBinaries"]
        self.__stripDocs = general["stripDocs"]
        self.__docsPath = general["docsPath"].strip("/")
        self.__stripLa = general["stripLa"]
        templates = general.get("templates")
        self.__templatesFile = absPath(templates) if templates else None
        self.__extraVars = MappingProxyType({ k : v for k, v in general.items()
                                              if k not in GENERAL_KEYS })
        self.__host = BuildFlavour(data["host"])
        self.__targetFlavour = BuildFlavour(data["target"])

    @classmethod
    def fromData(cls, data, baseDir=None):
        """Create configuration from raw (not yet validated) data."""
        try:
            data = CONFIG_SCHEMA.validate(data)
        except schema.SchemaError as e:
            raise ParseError("Invalid configuration: " + str(e))
        return cls(data, os.path.abspath(baseDir or os.getcwd()))

    @classmethod
    def load(cls, path=None):
        if path:
            candidates = [ path ]
        else:
            candidates = [ p for p in DEFAULT_CONFIG_PATHS if os.path.isfile(p) ]
            if not candidates:
                raise ParseError("Failed to find qpkg.yaml in the current directory or in /etc")
        path = os.path.abspath(candidates[0])
        data = loadYaml(path, CONFIG_SCHEMA)
        return cls(data, os.path.dirname(path))

    def getTarget(self):
        return self.__target

    def getSysroot(self):
        return self.__sysroot

    def getRecipesDir(self, host=False):
        return self.__hostRecipesDir if host else self.__recipesDir

    def getMetaDir(self):
        return self.__metaDir

    def getBuildRoot(self):
        return self.__buildRoot

    def getThreads(self):
        return self.__threads

    def getPreferBinaries(self):
        return self.__preferBinaries

    def getStripDocs(self):
        return self.__stripDocs

    def getDocsPath(self):
        return self.__docsPath

    def getStripLa(self):
        return self.__stripLa

    def getTemplatesFile(self):
        return self.__templatesFile

    def getExtraVars(self):
        return self.__extraVars

    def getFlavour(self, host):
        return self.__host if host else self.__targetFlavour

    def getArchivesDir(self):
        return os.path.join(self.__buildRoot, "archives")

    def getPackageDirs(self, name, host):
        """Return the (buildDir, destDir, rootSrcDir) triple of a package."""
        if host:
            builds, pkgs, sources = "host_builds", "host_pkgs", "host_sources"
        else:
            builds, pkgs, sources = "pkg_builds", "pkgs", "sources"
        return (os.path.join(self.__buildRoot, builds, name),
                os.path.join(self.__buildRoot, pkgs, name),
                os.path.join(self.__buildRoot, sources, name))

    def getGlobalEnv(self, host, envOverrides=()):
        """Compute the environment of a build flavour.

        Returns an ordered list of (name, value) pairs. Later entries win.
        """
        flavour = self.getFlavour(host)
        if host:
            ret = [ ("CC", flavour.getCC()), ("CXX", flavour.getCXX()) ]
        else:
            hostFlavour = self.getFlavour(True)
            ret = [
                ("CC", flavour.getCC().replace("@BUILDROOT@", self.__buildRoot)),
                ("CXX", flavour.getCXX().replace("@BUILDROOT@", self.__buildRoot)),
                ("QPKG_HOST_CC", whichCompiler(hostFlavour.getCC())),
                ("QPKG_HOST_CXX", whichCompiler(hostFlavour.getCXX())),
            ]
        ret.extend(flavour.getFlags())
        ret.extend(sorted(flavour.getExtraEnv().items()))
        if not host:
            ret.extend(envOverrides)
        return ret


def whichCompiler(name):
    ret = shutil.which(name)
    if ret is None:
        Warn("Host compiler '{}' not found in $PATH".format(name)).warn()
        ret = name
    return ret
