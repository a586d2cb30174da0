# SPDX-License-Identifier: MIT
"""Core build graph: nodes, flags, substitution and graph passes."""
