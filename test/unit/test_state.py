# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from tempfile import TemporaryDirectory
from unittest import TestCase
import os, os.path

from qpkg.state import StageGate, Manifest

class TestStageGate(TestCase):

    def testLifecycle(self):
        with TemporaryDirectory() as tmp:
            g = StageGate(os.path.join(tmp, "build", "foo", "qpkg.built"))
            self.assertFalse(g.exists())
            g.touch()
            self.assertTrue(g.exists())
            self.assertEqual(os.path.getsize(g.getPath()), 0)
            g.touch()
            g.remove()
            self.assertFalse(g.exists())
            g.remove()

class TestManifest(TestCase):

    def testMissing(self):
        with TemporaryDirectory() as tmp:
            self.assertEqual(Manifest(tmp, "foo").load(), [])

    def testFormat(self):
        with TemporaryDirectory() as tmp:
            m = Manifest(tmp, "foo")
            m.save(["usr", "usr/lib", "usr/lib/libfoo.so"])
            self.assertEqual(m.getPath(), os.path.join(tmp, "foo", "FILES"))
            with open(m.getPath()) as f:
                self.assertEqual(f.read(), "usr\nusr/lib\nusr/lib/libfoo.so\n")
            self.assertEqual(m.load(), ["usr", "usr/lib", "usr/lib/libfoo.so"])

    def testBlankLinesIgnored(self):
        with TemporaryDirectory() as tmp:
            os.mkdir(os.path.join(tmp, "foo"))
            with open(os.path.join(tmp, "foo", "FILES"), "w") as f:
                f.write("\nusr\n  \nusr/bin \n")
            self.assertEqual(Manifest(tmp, "foo").load(), ["usr", "usr/bin"])

    def testRemove(self):
        with TemporaryDirectory() as tmp:
            m = Manifest(tmp, "foo")
            m.save(["a"])
            m.remove()
            self.assertEqual(m.load(), [])
            m.remove()
