# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
jjdag core package.

A full-screen dashboard over `jj log`: chords resolve to jj invocations
run against the selected change, file or hunk.
"""

__version__ = "0.1.0"

from .kernel import Kernel as Kernel  # noqa: E402,F401 (re-export)
