# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from unittest import TestCase
from unittest.mock import patch
import os, os.path

from qpkg.config import Config
from qpkg.errors import ParseError

from mocks.project import ProjectTmp

class TestConfigLoad(ProjectTmp, TestCase):
    def testRelativePaths(self):
        c = self.getConfig()
        self.assertEqual(c.getSysroot(), self.path("sysroot"))
        self.assertEqual(c.getRecipesDir(), self.path("recipes"))
        self.assertEqual(c.getRecipesDir(True), self.path("host-recipes"))
        self.assertEqual(c.getMetaDir(), self.path("meta"))
        self.assertEqual(c.getBuildRoot(), self.path("build"))
        self.assertEqual(c.getArchivesDir(), self.path("build", "archives"))
        self.assertIsNone(c.getTemplatesFile())

    def testDefaults(self):
        c = self.getConfig()
        self.assertEqual(c.getTarget(), "aarch64-linux-gnu")
        self.assertEqual(c.getThreads(), 4)
        self.assertTrue(c.getPreferBinaries())
        self.assertFalse(c.getStripDocs())
        self.assertFalse(c.getStripLa())
        self.assertEqual(c.getDocsPath(), "usr/share/doc")
        self.assertEqual(dict(c.getExtraVars()), {})

    def testEmptyBuildRoot(self):
        self.writeConfig({ "buildRoot" : "" })
        self.assertEqual(self.getConfig().getBuildRoot(), os.path.normpath(self.root))
        self.writeConfig({ "buildRoot" : "." })
        self.assertEqual(self.getConfig().getBuildRoot(), os.path.normpath(self.root))

    def testAutodetectThreads(self):
        self.writeConfig({ "threads" : 0 })
        self.assertGreaterEqual(self.getConfig().getThreads(), 1)

    def testNegativeThreads(self):
        self.writeConfig({ "threads" : -1 })
        with self.assertRaises(ParseError):
            self.getConfig()

    def testExtraVars(self):
        self.writeConfig({ "prefix" : "/usr", "jobs" : 3, "docsPath" : "/usr/doc/" })
        c = self.getConfig()
        self.assertEqual(dict(c.getExtraVars()), { "prefix" : "/usr", "jobs" : "3" })
        self.assertEqual(c.getDocsPath(), "usr/doc")

    def testPackageDirs(self):
        c = self.getConfig()
        self.assertEqual(c.getPackageDirs("zlib", False), (
            self.path("build", "pkg_builds", "zlib"),
            self.path("build", "pkgs", "zlib"),
            self.path("build", "sources", "zlib")))
        self.assertEqual(c.getPackageDirs("gcc", True), (
            self.path("build", "host_builds", "gcc"),
            self.path("build", "host_pkgs", "gcc"),
            self.path("build", "host_sources", "gcc")))

    def testMissingKey(self):
        with open(self.path("qpkg.yaml"), "w") as f:
            f.write("general:\n  target: x86_64-linux-gnu\n")
        with self.assertRaises(ParseError):
            self.getConfig()

    def testMissingFile(self):
        with self.assertRaises(ParseError):
            Config.load(self.path("nope.yaml"))

    def testSearchOrder(self):
        cwd = os.getcwd()
        try:
            os.chdir(self.root)
            self.assertEqual(Config.load().getSysroot(), self.path("sysroot"))
        finally:
            os.chdir(cwd)

    def testNotFound(self):
        cwd = os.getcwd()
        try:
            os.chdir(self.path())
            os.unlink("qpkg.yaml")
            with patch('qpkg.config.DEFAULT_CONFIG_PATHS', ["qpkg.yaml"]):
                with self.assertRaises(ParseError):
                    Config.load()
        finally:
            os.chdir(cwd)

class TestGlobalEnv(ProjectTmp, TestCase):
    def setUp(self):
        super().setUp()
        self.writeConfig({}, host={ "cc" : "gcc", "cxx" : "g++", "cflags" : "-O2" },
            target={ "cc" : "@BUILDROOT@/host_pkgs/gcc/bin/cc",
                     "cxx" : "@BUILDROOT@/host_pkgs/gcc/bin/c++",
                     "ldflags" : "-static", "PKG_CONFIG" : "pkgconf" })

    @patch('qpkg.config.shutil.which', lambda name: "/usr/bin/" + name)
    def testTarget(self):
        env = self.getConfig().getGlobalEnv(False, [("A", "1"), ("CC", "override")])
        buildRoot = self.path("build")
        self.assertEqual(env, [
            ("CC", buildRoot + "/host_pkgs/gcc/bin/cc"),
            ("CXX", buildRoot + "/host_pkgs/gcc/bin/c++"),
            ("QPKG_HOST_CC", "/usr/bin/gcc"),
            ("QPKG_HOST_CXX", "/usr/bin/g++"),
            ("LDFLAGS", "-static"),
            ("PKG_CONFIG", "pkgconf"),
            ("A", "1"),
            ("CC", "override"),
        ])

    def testHost(self):
        env = self.getConfig().getGlobalEnv(True, [("A", "1")])
        self.assertEqual(env, [ ("CC", "gcc"), ("CXX", "g++"), ("CFLAGS", "-O2") ])

    @patch('qpkg.config.shutil.which', lambda name: None)
    def testUnresolvedHostCompiler(self):
        with patch('qpkg.config.Warn') as warn:
            env = dict(self.getConfig().getGlobalEnv(False))
            warn.assert_called()
        self.assertEqual(env["QPKG_HOST_CC"], "gcc")
