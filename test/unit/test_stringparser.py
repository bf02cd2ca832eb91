# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from unittest import TestCase

from qpkg.errors import ParseError
from qpkg.stringparser import Substitutor, placeholder, MAX_PASSES

class TestPlaceholder(TestCase):
    def testUpperCase(self):
        self.assertEqual(placeholder("prefix"), "@PREFIX@")
        self.assertEqual(placeholder("Cross_Prefix"), "@CROSS_PREFIX@")

class TestSubstitute(TestCase):
    def testSimple(self):
        s = Substitutor({ "@A@" : "1", "@B@" : "2" })
        self.assertEqual(s.substitute("@A@-@B@"), "1-2")
        self.assertEqual(s.substitute("nothing"), "nothing")
        self.assertEqual(s.substitute(""), "")

    def testUnknownKept(self):
        s = Substitutor({ "@A@" : "1" })
        self.assertEqual(s.substitute("@A@ @UNKNOWN@"), "1 @UNKNOWN@")

    def testEmptyTable(self):
        s = Substitutor({})
        self.assertEqual(s.substitute("@A@"), "@A@")
        self.assertEqual(s.expand(" @A@ "), "@A@")

    def testWhitespacePreserved(self):
        s = Substitutor({ "@A@" : "x" })
        self.assertEqual(s.substitute("  a  @A@\tb "), "  a  x\tb ")

    def testSinglePass(self):
        """Replaced text is not scanned again in the same pass"""
        s = Substitutor({ "@A@" : "@B@", "@B@" : "b" })
        self.assertEqual(s.substitute("@A@ @B@"), "@B@ b")

    def testEmptyReplacement(self):
        s = Substitutor({ "@OPT@" : "" })
        self.assertEqual(s.substitute("--a @OPT@--b"), "--a --b")

    def testLongestMatch(self):
        s = Substitutor({ "@A@" : "short", "@A@B@" : "long" })
        self.assertEqual(s.substitute("@A@B@"), "long")

class TestExpand(TestCase):
    def testNested(self):
        s = Substitutor({ "@A@" : "x-@B@", "@B@" : "y" })
        self.assertEqual(s.expand("@A@"), "x-y")

    def testDeeplyNested(self):
        s = Substitutor({ "@A@" : "@B@", "@B@" : "@C@", "@C@" : "c" })
        self.assertEqual(s.expand("<@A@>"), "<c>")

    def testStripped(self):
        s = Substitutor({ "@A@" : " a " })
        self.assertEqual(s.expand("  @A@"), "a")

    def testSelfReferenceFails(self):
        s = Substitutor({ "@A@" : "x@A@" })
        with self.assertRaises(ParseError) as ctx:
            s.expand("@A@", "build of 'foo'")
        self.assertIn("build of 'foo'", ctx.exception.slogan)

    def testPassLimit(self):
        # a chain that needs exactly MAX_PASSES-1 replacements still works
        table = { "@V{}@".format(i) : "@V{}@".format(i+1) for i in range(MAX_PASSES-2) }
        table["@V{}@".format(MAX_PASSES-2)] = "end"
        s = Substitutor(table)
        self.assertEqual(s.expand("@V0@"), "end")
