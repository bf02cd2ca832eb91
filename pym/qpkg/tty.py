# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

import sys

DEFAULT = 0
SKIPPED = 1
EXECUTED = 2
INFO = 3
WARNING = 4
ERROR = 5
HEADLINE = 6

ALWAYS = -2
IMPORTANT = -1
NORMAL = 0
INFO = 1
DEBUG = 2
TRACE = 3

COLORS2CODE = [ "", "", "32", "34", "33", "31", "32;1" ]

def colorize(string, color):
    if isinstance(color, int):
        color = COLORS2CODE[color]
    if __useColor and color:
        return "\x1b[" + color + "m" + string + "\x1b[0m"
    else:
        return string

class Unbuffered(object):
    def __init__(self, stream):
        self.stream = stream
    def write(self, data):
        self.stream.write(data)
        self.stream.flush()
    def __getattr__(self, attr):
        return getattr(self.stream, attr)

class Show:
    def __init__(self, slogan, color, message, help, onlyOnce=False):
        self.__slogan = slogan
        self.__color = color
        self.__message = message
        self.__help = help
        self.__triggered = False
        self.__onlyOnce = onlyOnce

    def show(self, location=None):
        if not self.__triggered:
            print(colorize(self.__slogan + ":", self.__color+";1"),
                colorize(((location + ": ") if location else "") + self.__message,
                    self.__color),
                file=sys.stderr)
            if self.__help:
                print(self.__help, file=sys.stderr)
            self.__triggered = self.__onlyOnce

class Warn(Show):
    def __init__(self, message, help=None, onlyOnce=False):
        super().__init__("WARNING", "33", message, help, onlyOnce)

    def warn(self, location=None):
        super().show(location)

###############################################################################

class DummyTUIAction:
    visible = False

    def setResult(self, message, kind=EXECUTED):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        return False

class SingleTUIAction:
    visible = True

    def __init__(self):
        self.ok_kind = EXECUTED
        self.ok_message = "ok"
        self.err_kind = ERROR
        self.err_message = "error"

    def setResult(self, message, kind=EXECUTED):
        self.ok_message = message
        self.ok_kind = kind

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            kind = self.ok_kind
            message = self.ok_message
        else:
            kind = self.err_kind
            message = self.err_message
        print(colorize(message, kind))
        return False

class SingleTUI:
    """Sequential console output.

    Every package gets a headline as soon as the first message for it is
    shown. Subsequent lines of the same package are indented below it.
    """

    def __init__(self, verbosity):
        self.__verbosity = verbosity
        self.__currentPackage = None

    def getVerbosity(self):
        return self.__verbosity

    def setVerbosity(self, verbosity):
        self.__verbosity = verbosity

    def _isVisible(self, severity):
        return severity <= self.__verbosity

    def __setPackage(self, package):
        if package != self.__currentPackage:
            self.__currentPackage = package
            print(">>", colorize(package, HEADLINE))

    def log(self, message, kind, severity):
        if not self._isVisible(severity): return
        print(colorize("** {}".format(message), kind))

    def stepMessage(self, package, action, message, kind, severity):
        if not self._isVisible(severity): return
        self.__setPackage(package)
        print(colorize("   {:10}{}".format(action, message), kind))

    def stepAction(self, package, action, message, severity):
        if not self._isVisible(severity): return DummyTUIAction()
        self.__setPackage(package)
        print(colorize("   {:10}{} .. ".format(action, message), EXECUTED), end="")
        return SingleTUIAction()

def log(message, kind, severity=ALWAYS):
    __tui.log(message, kind, severity)

def stepMessage(package, action, message, kind, severity=ALWAYS):
    __tui.stepMessage(package, action, message, kind, severity)

def stepAction(package, action, message, severity=ALWAYS):
    return __tui.stepAction(package, action, message, severity)

def getVerbosity():
    return __tui.getVerbosity()

def setVerbosity(verbosity):
    verbosity = max(ALWAYS, min(TRACE, verbosity))
    __tui.setVerbosity(verbosity)

# module initialization

__onTTY = (sys.stdout.isatty() and sys.stderr.isatty())
__useColor = False
__tui = SingleTUI(NORMAL)

def setColorMode(mode):
    global __useColor
    if mode == 'never':
        __useColor = False
    elif mode == 'always':
        __useColor = True
    elif mode == 'auto':
        __useColor = __onTTY

# auto is the default
setColorMode('auto')
