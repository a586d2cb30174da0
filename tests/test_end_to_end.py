# SPDX-License-Identifier: MIT
"""One graph through every backend."""

from __future__ import annotations

from pathlib import Path

from buildgraph.configure.platform import WINDOWS, set_target_platform
from buildgraph.core.node import (
    Application,
    DynamicExtension,
    ObjectFile,
    ObjectLibrary,
    Solution,
)
from buildgraph.generators import ExecutionGenerator, MakefileGenerator, VisualStudioGenerator
from buildgraph.toolchains import select_toolset


class TestHelloGraph:
    def test_execution(self, tmp_path: Path, gnu_toolset, hello_graph) -> None:
        """Two compiles, then one link with both objects and libm."""
        solution, _, _ = hello_graph
        commands: list[str] = []

        def runner(command: str, cwd: Path | None) -> int:
            commands.append(command)
            return 0

        ExecutionGenerator(gnu_toolset, runner=runner).run(solution, cwd=tmp_path)

        compiles = [c for c in commands if " -c " in c]
        links = [c for c in commands if " -c " not in c]
        assert len(compiles) == 2
        assert len(links) == 1
        assert "src/a.o" in links[0] and "src/b.o" in links[0]
        assert links[0].endswith("-lm")

    def test_makefile(self, tmp_path: Path, gnu_toolset, hello_graph) -> None:
        solution, app, _ = hello_graph
        text = MakefileGenerator(gnu_toolset).generate(solution, tmp_path).read_text()

        assert "src/a.o: src/a.c\n" in text
        assert "src/b.o: src/b.c\n" in text
        assert text.startswith(f"{app.output}: src/a.o src/b.o\n")

    def test_visual_studio(self, tmp_path: Path) -> None:
        set_target_platform(WINDOWS)
        objs = ObjectLibrary("objs", depends=[ObjectFile("src/a.c"), ObjectFile("src/b.c")])
        app = Application("app", depends=[objs, DynamicExtension("m")])
        solution = Solution("hello", depends=[app])

        sln = VisualStudioGenerator(select_toolset("cl", "link")).generate(solution, tmp_path)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["app.vcxproj", "hello.sln", "objs.vcxproj"]
        assert "<AdditionalDependencies>m.lib</AdditionalDependencies>" in (tmp_path / "app.vcxproj").read_text()
        assert sln.read_text().count("EndProject\n") == 2

    def test_same_graph_twice(self, tmp_path: Path, gnu_toolset, hello_graph) -> None:
        """Generators leave the graph reusable: outputs are resolved once and stay put."""
        solution, app, objs = hello_graph
        MakefileGenerator(gnu_toolset).generate(solution, tmp_path / "first")
        MakefileGenerator(gnu_toolset).generate(solution, tmp_path / "second")
        assert (tmp_path / "first" / "Makefile").read_text() == (tmp_path / "second" / "Makefile").read_text()
        assert [obj.output for obj in objs.objects] == ["src/a.o", "src/b.o"]
        assert app.output == "app"
