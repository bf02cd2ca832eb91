# qpkg cross build tool
# Copyright (C) 2024  The qpkg developers
#
# SPDX-License-Identifier: GPL-3.0-or-later

QPKG_VERSION = "0.4.0"
