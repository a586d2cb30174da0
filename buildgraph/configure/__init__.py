# SPDX-License-Identifier: MIT
"""Target platforms and build configuration."""
