# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .config import loadYaml, SCALAR
from .errors import ParseError
from types import MappingProxyType
import os, os.path
import schema

STAGES = ("prepare", "configure", "build", "install")

RECIPE_NAME_SCHEMA = schema.Regex(r'^[0-9A-Za-z_.+-]+$')

class EnvListValidator:
    """Validate a list of single-entry mappings.

    The list is converted into a list of (name, value) tuples. Order and
    duplicates are retained.
    """

    def validate(self, data):
        if not isinstance(data, list):
            raise schema.SchemaUnexpectedTypeError(
                "Environment must be a list of single-entry mappings", None)
        ret = []
        for entry in data:
            if not isinstance(entry, dict) or len(entry) != 1:
                raise schema.SchemaError(None,
                    "Environment entry must be a mapping with exactly one entry: {}".format(entry))
            ((name, value),) = entry.items()
            if not isinstance(name, str):
                raise schema.SchemaError(None,
                    "Environment variable name must be a string: {}".format(name))
            ret.append((name, SCALAR.validate(value)))
        return ret

class CommandLineValidator:
    """A command line is a token list. A plain string is a one-token line."""

    def validate(self, data):
        if isinstance(data, str):
            return [data]
        return schema.Schema([SCALAR]).validate(data)

STAGE_SCHEMA = schema.Schema({
    schema.Optional('args', default=[]) : [ CommandLineValidator() ],
    schema.Optional('env', default=[]) : EnvListValidator(),
})

RECIPE_SCHEMA = schema.Schema({
    'general' : {
        schema.Optional('name') : RECIPE_NAME_SCHEMA,
        'version' : SCALAR,
        schema.Optional('src', default=[]) : [str],
        schema.Optional('workdir', default="") : str,
        schema.Optional('srcUnpackDir', default="") : str,
        schema.Optional('template') : str,
        schema.Optional('binaryAlternative', default="") : str,
        schema.Optional('noAutoPatch', default=False) : bool,
        schema.Optional('noAutoUnpack', default=False) : bool,
        schema.Optional('recurseSubmodules', default=False) : bool,
        schema.Optional('exportsPath', default=True) : bool,
        schema.Optional('exportsAclocal', default=False) : bool,
        schema.Optional('reexportsPath', default=False) : bool,
        schema.Optional('depends', default=[]) : [RECIPE_NAME_SCHEMA],
        schema.Optional('hostDepends', default=[]) : [RECIPE_NAME_SCHEMA],
        schema.Optional(str) : SCALAR,
    },
    schema.Optional('prepare') : STAGE_SCHEMA,
    schema.Optional('configure') : STAGE_SCHEMA,
    schema.Optional('build') : STAGE_SCHEMA,
    schema.Optional('install') : STAGE_SCHEMA,
})

GENERAL_KEYS = frozenset(['name', 'version', 'src', 'workdir', 'srcUnpackDir',
    'template', 'binaryAlternative', 'noAutoPatch', 'noAutoUnpack',
    'recurseSubmodules', 'exportsPath', 'exportsAclocal', 'reexportsPath',
    'depends', 'hostDepends'])

TEMPLATE_SCHEMA = schema.Schema({
    schema.Optional('optArgs', default=[]) : [str],
    schema.Optional('depends', default=[]) : [RECIPE_NAME_SCHEMA],
    schema.Optional('hostDepends', default=[]) : [RECIPE_NAME_SCHEMA],
    schema.Optional('addPrepare', default=[]) : [str],
    schema.Optional('addConfigure', default=[]) : [str],
    schema.Optional('addBuild', default=[]) : [str],
    schema.Optional('addInstall', default=[]) : [str],
    schema.Optional('prepareEnv', default=[]) : EnvListValidator(),
    schema.Optional('configureEnv', default=[]) : EnvListValidator(),
    schema.Optional('buildEnv', default=[]) : EnvListValidator(),
    schema.Optional('installEnv', default=[]) : EnvListValidator(),
    schema.Optional('defaultPrepare', default="") : str,
    schema.Optional('defaultConfigure', default="") : str,
    schema.Optional('defaultBuild', default="") : str,
    schema.Optional('defaultInstall', default="") : str,
    schema.Optional(str) : object,
})

TEMPLATES_SCHEMA = schema.Schema({ schema.Optional(RECIPE_NAME_SCHEMA) : TEMPLATE_SCHEMA })

TEMPLATE_KEYS = frozenset(['optArgs', 'depends', 'hostDepends']) | \
    frozenset("add" + s.capitalize() for s in STAGES) | \
    frozenset(s + "Env" for s in STAGES) | \
    frozenset("default" + s.capitalize() for s in STAGES)


class Stage:
    """Commands and environment overrides of one build stage.

    ``args`` is a tuple of command lines, each a tuple of tokens. ``env`` is
    a tuple of (name, value) pairs where later entries override earlier ones.
    """

    __slots__ = ('args', 'env')

    def __init__(self, args=(), env=()):
        self.args = tuple(tuple(line) for line in args)
        self.env = tuple((name, value) for name, value in env)

    def __eq__(self, other):
        return isinstance(other, Stage) and (self.args, self.env) == (other.args, other.env)

    def __repr__(self):
        return "Stage(args={!r}, env={!r})".format(self.args, self.env)

    def getCommands(self):
        """Return the shell command lines of the stage."""
        return [ " ".join(line) for line in self.args ]

    def extend(self, args=(), env=()):
        return Stage(self.args + tuple(tuple(line) for line in args),
                     self.env + tuple(env))

    def map(self, fun):
        return Stage([ [ fun(arg) for arg in line ] for line in self.args ],
                     [ (name, fun(value)) for name, value in self.env ])


class Recipe:
    """Build description of a single package.

    Recipes are never modified. Template merging and placeholder substitution
    create new instances through :meth:`replace`.
    """

    __slots__ = ('name', 'version', 'sources', 'workDir', 'srcUnpackDir',
        'templateName', 'binaryAlternative', 'noAutoPatch', 'noAutoUnpack',
        'recurseSubmodules', 'exportsPath', 'exportsAclocal', 'reexportsPath',
        'dependencies', 'hostDependencies', 'properties', 'stages')

    def __init__(self, name, version, sources=(), workDir="", srcUnpackDir="",
                 templateName=None, binaryAlternative="", noAutoPatch=False,
                 noAutoUnpack=False, recurseSubmodules=False, exportsPath=True,
                 exportsAclocal=False, reexportsPath=False, dependencies=(),
                 hostDependencies=(), properties={}, stages={}):
        self.name = name
        self.version = version
        self.sources = tuple(sources)
        self.workDir = workDir
        self.srcUnpackDir = srcUnpackDir
        self.templateName = templateName
        self.binaryAlternative = binaryAlternative
        self.noAutoPatch = noAutoPatch
        self.noAutoUnpack = noAutoUnpack
        self.recurseSubmodules = recurseSubmodules
        self.exportsPath = exportsPath
        self.exportsAclocal = exportsAclocal
        self.reexportsPath = reexportsPath
        self.dependencies = tuple(dependencies)
        self.hostDependencies = tuple(hostDependencies)
        self.properties = MappingProxyType(dict(properties))
        self.stages = MappingProxyType({ s : stages.get(s, Stage()) for s in STAGES })

    @classmethod
    def fromData(cls, data, defaultName=None):
        """Create recipe from schema validated data."""
        general = data["general"]
        return cls(
            name = general.get("name", defaultName),
            version = general["version"],
            sources = general["src"],
            workDir = general["workdir"],
            srcUnpackDir = general["srcUnpackDir"],
            templateName = general.get("template"),
            binaryAlternative = general["binaryAlternative"],
            noAutoPatch = general["noAutoPatch"],
            noAutoUnpack = general["noAutoUnpack"],
            recurseSubmodules = general["recurseSubmodules"],
            exportsPath = general["exportsPath"],
            exportsAclocal = general["exportsAclocal"],
            reexportsPath = general["reexportsPath"],
            dependencies = general["depends"],
            hostDependencies = general["hostDepends"],
            properties = { k : v for k, v in general.items() if k not in GENERAL_KEYS },
            stages = { s : Stage(data[s]["args"], data[s]["env"])
                       for s in STAGES if s in data },
        )

    def replace(self, **kwargs):
        """Return a copy of the recipe with some attributes replaced."""
        attrs = { k : getattr(self, k) for k in self.__slots__ }
        attrs.update(kwargs)
        return Recipe(**attrs)

    def getStage(self, stage):
        return self.stages[stage]


class Template:
    """Reusable recipe fragment."""

    __slots__ = ('name', 'optArgs', 'dependencies', 'hostDependencies',
        'addCommands', 'env', 'defaults', 'others')

    def __init__(self, name, data):
        self.name = name
        self.optArgs = tuple(data["optArgs"])
        self.dependencies = tuple(data["depends"])
        self.hostDependencies = tuple(data["hostDepends"])
        self.addCommands = MappingProxyType({ s : tuple(data["add" + s.capitalize()])
                                              for s in STAGES })
        self.env = MappingProxyType({ s : tuple(data[s + "Env"]) for s in STAGES })
        self.defaults = MappingProxyType({ s : data["default" + s.capitalize()]
                                           for s in STAGES })
        self.others = MappingProxyType({ k : v for k, v in data.items()
                                         if k not in TEMPLATE_KEYS })

    def getDefaultCommands(self, stage):
        """Get the default command lines of a stage.

        Returns an empty list if the template has no default for the stage.
        The default names an entry of the free-form part of the template that
        must be a list of strings.
        """
        ref = self.defaults[stage]
        if not ref:
            return []
        cmds = self.others.get(ref)
        if not isinstance(cmds, list) or not all(isinstance(c, str) for c in cmds):
            raise ParseError("Template '{}': default {} step '{}' must be an array of strings"
                                .format(self.name, stage, ref))
        return [ [c] for c in cmds ]


def mergeTemplate(recipe, template):
    """Merge template defaults into a recipe.

    Returns a new recipe. Neither the recipe nor the template are modified.
    Template dependencies are appended to the recipe ones. Default step
    commands are only used if the recipe itself has no commands for the
    stage. Additional template commands and environment overrides are always
    appended.
    """
    stages = {}
    for s in STAGES:
        stage = recipe.getStage(s)
        if not stage.args:
            stage = Stage(template.getDefaultCommands(s), stage.env)
        stages[s] = stage.extend([ [c] for c in template.addCommands[s] ],
                                 template.env[s])

    return recipe.replace(
        dependencies = recipe.dependencies + template.dependencies,
        hostDependencies = recipe.hostDependencies + template.hostDependencies,
        stages = stages)

def applyTemplate(recipe, templates):
    """Look up the template of a recipe and merge it.

    Recipes without template are returned unchanged.
    """
    if recipe.templateName is None:
        return recipe
    template = templates.get(recipe.templateName)
    if template is None:
        raise ParseError("Recipe '{}' references undefined template '{}'"
                            .format(recipe.name, recipe.templateName))
    return mergeTemplate(recipe, template)


class RecipeSet:
    """Access to the recipes and templates of a configuration.

    Recipes are loaded lazily and cached per (name, host) tuple.
    """

    def __init__(self, config):
        self.__config = config
        self.__recipes = {}
        self.__templates = None

    def getRecipeDir(self, name, host):
        return os.path.join(self.__config.getRecipesDir(host), name)

    def getPatchesDir(self, name, host):
        return os.path.join(self.getRecipeDir(name, host), "patches")

    def getRecipe(self, name, host):
        key = (name, host)
        recipe = self.__recipes.get(key)
        if recipe is None:
            path = os.path.join(self.getRecipeDir(name, host), "recipe.yaml")
            if not os.path.isfile(path):
                raise ParseError("Failed to read {}recipe '{}': {} not found"
                                    .format("host " if host else "", name, path))
            recipe = Recipe.fromData(loadYaml(path, RECIPE_SCHEMA), name)
            self.__recipes[key] = recipe
        return recipe

    def getTemplates(self):
        if self.__templates is None:
            path = self.__config.getTemplatesFile()
            if path:
                data = loadYaml(path, TEMPLATES_SCHEMA)
                self.__templates = MappingProxyType({ name : Template(name, t)
                                                      for name, t in data.items() })
            else:
                self.__templates = MappingProxyType({})
        return self.__templates
