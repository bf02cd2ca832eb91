# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from tempfile import TemporaryDirectory
from unittest import TestCase
import os, os.path

from qpkg.errors import BuildError
from qpkg.invoker import CmdFailedError
from qpkg.scm import getScm, GitScm, UrlScm, LocalScm, isTarball
from qpkg.utils import runInEventLoop

from mocks.invoker import MockInvoker

class TestClassify(TestCase):

    def testGit(self):
        s = getScm("https://github.com/madler/zlib.git")
        self.assertIsInstance(s, GitScm)
        self.assertEqual(s.getName(), "zlib")
        self.assertEqual(s.getUrl(), "https://github.com/madler/zlib.git")
        self.assertIsNone(s.getBranch())
        self.assertTrue(s.isShallow())

    def testGitBranch(self):
        s = getScm("https://gitlab.com/foo/bar.git:v1.2")
        self.assertEqual(s.getUrl(), "https://gitlab.com/foo/bar.git")
        self.assertEqual(s.getBranch(), "v1.2")
        self.assertTrue(s.isShallow())
        self.assertEqual(s.getName(), "bar")

    def testGitFull(self):
        s = getScm("git@github.com:foo/bar.git:main,full")
        self.assertEqual(s.getUrl(), "git@github.com:foo/bar.git")
        self.assertEqual(s.getBranch(), "main")
        self.assertFalse(s.isShallow())

        s = getScm("https://x.org/y.git:,full")
        self.assertIsNone(s.getBranch())
        self.assertFalse(s.isShallow())

    def testGitHostName(self):
        s = getScm("https://host.gitlab.io/pkg/foo.git")
        self.assertIsInstance(s, GitScm)
        self.assertEqual(s.getUrl(), "https://host.gitlab.io/pkg/foo.git")

    def testUrl(self):
        s = getScm("https://zlib.net/zlib-1.3.tar.xz")
        self.assertIsInstance(s, UrlScm)
        self.assertEqual(s.getName(), "zlib-1.3.tar.xz")
        self.assertEqual(s.getPath("/archives"), "/archives/zlib-1.3.tar.xz")

    def testLocal(self):
        s = getScm("files/config.tar.gz", baseDir="/recipes/foo")
        self.assertIsInstance(s, LocalScm)
        self.assertEqual(s.getPath("/archives"), "/recipes/foo/files/config.tar.gz")
        s = getScm("/abs/file.tar.gz", baseDir="/recipes/foo")
        self.assertEqual(s.getPath("/archives"), "/abs/file.tar.gz")

    def testTarball(self):
        for ext in ("xz", "gz", "bz2", "zst"):
            self.assertTrue(isTarball("foo.tar." + ext))
        self.assertFalse(isTarball("foo.zip"))
        self.assertFalse(isTarball("foo.tar"))

class TestGitCommands(TestCase):

    def testClone(self):
        s = getScm("https://x.org/y.git")
        self.assertEqual(s.getCloneCommand("/a/y"),
            ["git", "clone", "https://x.org/y.git", "--depth=1", "/a/y"])

    def testCloneOptions(self):
        s = getScm("https://x.org/y.git:dev,full", True)
        self.assertEqual(s.getCloneCommand("/a/y"),
            ["git", "clone", "https://x.org/y.git", "-b", "dev",
             "--recurse-submodules", "/a/y"])

class TestFetch(TestCase):

    def testSkipExisting(self):
        with TemporaryDirectory() as tmp:
            s = getScm("https://zlib.net/zlib-1.3.tar.xz")
            path = s.getPath(tmp)
            open(path, "w").close()
            invoker = MockInvoker()
            runInEventLoop(s.fetch(invoker, path))
            self.assertEqual(invoker.commands, [])

    def testWget(self):
        with TemporaryDirectory() as tmp:
            s = getScm("https://zlib.net/zlib-1.3.tar.xz")
            path = s.getPath(os.path.join(tmp, "archives"))
            invoker = MockInvoker()
            runInEventLoop(s.fetch(invoker, path))
            self.assertEqual(invoker.commands[0][0],
                ["wget", "https://zlib.net/zlib-1.3.tar.xz", "-O", path])
            self.assertTrue(os.path.isdir(os.path.join(tmp, "archives")))

    def testWgetFailureCleansUp(self):
        class FailingInvoker(MockInvoker):
            async def checkCommand(self, args, cwd=None, env=None):
                open(args[-1], "w").close()
                raise CmdFailedError(" ".join(args), 4)

        with TemporaryDirectory() as tmp:
            s = getScm("https://zlib.net/zlib-1.3.tar.xz")
            path = s.getPath(tmp)
            with self.assertRaises(BuildError):
                runInEventLoop(s.fetch(FailingInvoker(), path))
            self.assertFalse(os.path.exists(path))

    def testGitClone(self):
        with TemporaryDirectory() as tmp:
            s = getScm("https://x.org/y.git")
            invoker = MockInvoker()
            runInEventLoop(s.fetch(invoker, s.getPath(tmp)))
            self.assertEqual(invoker.commands[0][0][:2], ["git", "clone"])
            self.assertEqual(invoker.commands[0][0][-1], os.path.join(tmp, "y"))

    def testMissingLocal(self):
        with TemporaryDirectory() as tmp:
            s = getScm("missing.tar.gz", baseDir=tmp)
            with self.assertRaises(BuildError):
                runInEventLoop(s.fetch(MockInvoker(), s.getPath(tmp)))

class TestUnpack(TestCase):

    def testTarball(self):
        with TemporaryDirectory() as tmp:
            s = getScm("https://zlib.net/zlib-1.3.tar.xz")
            invoker = MockInvoker()
            src = os.path.join(tmp, "src")
            runInEventLoop(s.unpack(invoker, "/archives/zlib-1.3.tar.xz", src,
                                    os.path.join(src, "zlib-1.3")))
            self.assertEqual(invoker.commands,
                [(["tar", "-xf", "/archives/zlib-1.3.tar.xz"], src, None)])

    def testPlainFileIgnored(self):
        s = getScm("https://example.com/config.sub")
        invoker = MockInvoker()
        runInEventLoop(s.unpack(invoker, "/archives/config.sub", "/src", "/src"))
        self.assertEqual(invoker.commands, [])

    def testGitSymlink(self):
        with TemporaryDirectory() as tmp:
            clone = os.path.join(tmp, "archives", "y")
            os.makedirs(clone)
            workDir = os.path.join(tmp, "src", "y")
            s = getScm("https://x.org/y.git")
            runInEventLoop(s.unpack(MockInvoker(), clone, os.path.join(tmp, "src"), workDir))
            self.assertEqual(os.readlink(workDir), clone)
            # existing link is tolerated
            runInEventLoop(s.unpack(MockInvoker(), clone, os.path.join(tmp, "src"), workDir))
