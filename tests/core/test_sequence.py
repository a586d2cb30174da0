# SPDX-License-Identifier: MIT
"""Tests for buildgraph.core.sequence."""

import pytest

from buildgraph.core.errors import ConfigurationError, DependencyCycleError
from buildgraph.core.sequence import Extension, calculate_sequence, sequence_extensions


class TestCalculateSequence:
    def test_chain(self):
        exts = [
            Extension("c", requires=["b"]),
            Extension("b", requires=["a"]),
            Extension("a"),
        ]
        assert calculate_sequence(exts) == {"a": 0, "b": 1, "c": 2}

    def test_highest_requirement_counts(self):
        exts = [
            Extension("base"),
            Extension("mid", requires=["base"]),
            Extension("top", requires=["base", "mid"]),
        ]
        assert calculate_sequence(exts)["top"] == 2

    def test_no_requirements(self):
        assert calculate_sequence([Extension("x"), Extension("y")]) == {"x": 0, "y": 0}

    def test_empty(self):
        assert calculate_sequence([]) == {}

    def test_unknown_requirement(self):
        with pytest.raises(ConfigurationError, match="unrecognized dependency 'zlib'"):
            calculate_sequence([Extension("png", requires=["zlib"])])

    def test_cycle(self):
        exts = [Extension("a", requires=["b"]), Extension("b", requires=["a"])]
        with pytest.raises(DependencyCycleError) as exc_info:
            calculate_sequence(exts)
        assert exc_info.value.cycle == ["a", "b", "a"]

    def test_self_requirement(self):
        with pytest.raises(DependencyCycleError, match="a -> a"):
            calculate_sequence([Extension("a", requires=["a"])])


class TestSequenceExtensions:
    def test_requirements_come_first(self):
        exts = [
            Extension("png", requires=["zlib"]),
            Extension("zlib"),
            Extension("gui", requires=["png"]),
        ]
        assert [e.name for e in sequence_extensions(exts)] == ["zlib", "png", "gui"]

    def test_ties_keep_declared_order(self):
        exts = [Extension("b"), Extension("a"), Extension("c")]
        assert [e.name for e in sequence_extensions(exts)] == ["b", "a", "c"]
