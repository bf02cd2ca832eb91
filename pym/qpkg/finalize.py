# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .errors import ParseError
from .input import STAGES, applyTemplate
from .stringparser import Substitutor, placeholder
import os.path

def getSourceDir(recipe, rootSrcDir):
    """Compute the absolute source directory of a recipe.

    This is the work directory inside the (optional) unpack directory of the
    recipe or inside the source root of the package.
    """
    workDir = recipe.workDir.replace("@VERSION@", recipe.version)
    root = recipe.srcUnpackDir or rootSrcDir
    return os.path.abspath(os.path.join(root, workDir))

def makeSubstitutor(recipe, templates, config, rootSrcDir, destDir):
    table = {
        "@VERSION@" : recipe.version,
        "@BUILDROOT@" : os.path.abspath(config.getBuildRoot()),
        "@SRCDIR@" : getSourceDir(recipe, rootSrcDir),
        "@DESTDIR@" : os.path.abspath(destDir),
        "@SYSROOT@" : os.path.abspath(config.getSysroot()),
        "@TARGET@" : config.getTarget(),
        "@THREADS@" : str(config.getThreads()),
    }
    for name, value in config.getExtraVars().items():
        table[placeholder(name)] = value
    for name, value in recipe.properties.items():
        table[placeholder(name)] = value
    if recipe.templateName is not None:
        for name in templates[recipe.templateName].optArgs:
            table.setdefault(placeholder(name), "")
    return Substitutor(table)

def finalizeRecipe(recipe, templates, config, rootSrcDir, destDir):
    """Create the executable form of a recipe.

    Merges the template of the recipe (if any) and substitutes all
    placeholders in the sources, the work directory and all stage arguments
    and environment values. Stage values are expanded until they do not
    change anymore. The passed recipe is not modified.
    """
    merged = applyTemplate(recipe, templates)
    subst = makeSubstitutor(merged, templates, config, rootSrcDir, destDir)

    def expand(stageName):
        def fun(value):
            return subst.expand(value, "{} of '{}'".format(stageName, recipe.name))
        return fun

    try:
        return merged.replace(
            sources = [ subst.substitute(s) for s in merged.sources ],
            workDir = subst.substitute(merged.workDir),
            stages = { s : merged.getStage(s).map(expand(s)) for s in STAGES })
    except ParseError as e:
        e.pushFrame(recipe.name)
        raise
