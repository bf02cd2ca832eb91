# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

from .errors import ParseError
import pyparsing

# Upper bound of substitution passes for nested placeholders
MAX_PASSES = 64

def placeholder(name):
    return "@" + name.upper() + "@"

class Substitutor:
    """Multi-pattern placeholder replacement.

    All patterns of the table are matched in a single scan of the input. The
    longest pattern wins at every position and replaced text is never
    re-scanned within the same pass. Use :meth:`expand` to resolve
    placeholders that expand into other placeholders.
    """

    __slots__ = ('table', 'scanner')

    def __init__(self, table):
        self.table = dict(table)
        if self.table:
            self.scanner = pyparsing.one_of(list(self.table.keys())).leave_whitespace()
            self.scanner.set_parse_action(lambda toks: self.table[toks[0]])
        else:
            self.scanner = None

    def substitute(self, text):
        """Do one simultaneous replacement pass over ``text``."""
        if self.scanner is None or "@" not in text:
            return text
        return self.scanner.transform_string(text)

    def expand(self, text, what=None):
        """Substitute repeatedly until nothing changes anymore.

        The value is stripped before every pass. Gives up with a
        :class:`ParseError` if the value still changes after
        :data:`MAX_PASSES` passes.
        """
        cur = text.strip()
        for _ in range(MAX_PASSES):
            nxt = self.substitute(cur).strip()
            if nxt == cur:
                return cur
            cur = nxt
        raise ParseError("Placeholder expansion does not terminate: '{}'{}"
                            .format(text, (" in " + what) if what else ""))
