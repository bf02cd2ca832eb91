# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from ..builder import Builder, Operations
from ..errors import ParseError
from ..input import RecipeSet, STAGES
from ..invoker import Invoker
from ..tty import setVerbosity, setColorMode, NORMAL
from ..utils import runInEventLoop
import argparse

BUILD_OPS = STAGES + ("sync", "rebuild")
MISC_OPS = ("remove", "gen-patch")
OPS = BUILD_OPS + MISC_OPS

def _envArgument(arg):
    name, sep, value = arg.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError("'{}' is not of the form NAME=VALUE".format(arg))
    return (name, value)

def makeParser():
    parser = argparse.ArgumentParser(prog="qpkg",
        usage="%(prog)s OPERATION... [OPTION]... PACKAGE...",
        description="Cross build tool.",
        epilog="Operations: " + ", ".join(OPS))
    parser.add_argument('words', metavar='WORD', nargs='+',
        help="Operations followed by package names")
    parser.add_argument('-f', '--force', default=False, action='store_true',
        help="Force execution of the requested stages")
    parser.add_argument('--host', default=False, action='store_true',
        help="Operate on host packages")
    parser.add_argument('--dev', default=False, action='store_true',
        help="Keep prepared sources in a git repository for gen-patch")
    parser.add_argument('--env', default=[], action='append', type=_envArgument,
        metavar="NAME=VALUE", help="Set environment variable for target builds")
    parser.add_argument('--config', default=None, metavar="PATH",
        help="Use configuration file (default: ./qpkg.yaml, /etc/qpkg.yaml)")
    parser.add_argument('-q', '--quiet', default=0, action='count',
        help="Decrease verbosity (may be specified multiple times)")
    parser.add_argument('-v', '--verbose', default=0, action='count',
        help="Increase verbosity (may be specified multiple times)")
    parser.add_argument('--color', dest='color_mode', default='auto',
        choices=['never', 'always', 'auto'],
        help="Color mode of console output (default: auto)")
    return parser

def parseArgs(argv):
    """Parse the command line.

    Returns the parsed arguments with two extra attributes: ``ops`` (the
    leading operation keywords) and ``packages`` (the remaining names).
    """
    args = makeParser().parse_intermixed_args(argv)

    ops = []
    words = list(args.words)
    while words and words[0] in OPS:
        ops.append(words.pop(0))
    if not ops:
        raise ParseError("No operation given. Use one of: " + ", ".join(OPS))
    if not words:
        raise ParseError("No package given")
    for w in words:
        if w in OPS:
            raise ParseError("Operation '{}' must precede the package names".format(w))

    misc = [ o for o in ops if o in MISC_OPS ]
    if misc and len(ops) > 1:
        raise ParseError("'{}' cannot be combined with other operations".format(misc[0]))

    args.ops = ops
    args.packages = words
    return args

def setupOutput(args):
    setColorMode(args.color_mode)
    setVerbosity(NORMAL + args.verbose - args.quiet)

def doBuild(args, config):
    recipes = RecipeSet(config)
    builder = Builder(config, recipes, Invoker(), Operations(args.ops, args.force),
                      args.env, args.dev)
    runInEventLoop(builder.cook(args.packages, args.host))
