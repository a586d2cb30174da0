# SPDX-License-Identifier: MIT
"""Tool base classes."""
