# SPDX-License-Identifier: MIT
"""Command-line interface for buildgraph."""

from __future__ import annotations

import argparse
import ast
import json
import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path

from buildgraph.core.errors import BuildGraphError

# Set up logging
logger = logging.getLogger("buildgraph")

BACKENDS = ("execution", "makefile", "nmake", "mingw-make", "visual-studio", "vs2015")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def find_script(name: str, search_dir: Path | None = None) -> Path | None:
    """Find a build script by name.

    Args:
        name: Script name (e.g., 'build.py')
        search_dir: Directory to search in (default: current dir)

    Returns:
        Path to script if found, None otherwise.
    """
    if search_dir is None:
        search_dir = Path.cwd()

    script_path = search_dir / name
    if script_path.is_file():
        return script_path

    return None


def parse_variables(args: list[str]) -> tuple[dict[str, str], list[str]]:
    """Parse KEY=value arguments from a list.

    Returns:
        Tuple of (variables dict, remaining args).
    """
    variables: dict[str, str] = {}
    remaining: list[str] = []

    for arg in args:
        if "=" in arg and not arg.startswith("-"):
            key, _, value = arg.partition("=")
            if key:
                variables[key] = value
            else:
                remaining.append(arg)
        else:
            remaining.append(arg)

    return variables, remaining


def run_script(
    script_path: Path,
    build_dir: Path,
    variables: dict[str, str] | None = None,
    backend: str | None = None,
    toolset: str | None = None,
    config: Path | None = None,
) -> int:
    """Execute a Python build script.

    Args:
        script_path: Path to the script to run.
        build_dir: Build directory, passed via BUILDGRAPH_BUILD_DIR.
        variables: Build variables, passed via BUILDGRAPH_VARS.
        backend: Backend name, passed via BUILDGRAPH_BACKEND.
        toolset: 'compiler+linker', passed via BUILDGRAPH_TOOLSET.
        config: Configuration file, passed via BUILDGRAPH_CONFIG.

    Returns:
        Exit code from script execution.
    """
    env = os.environ.copy()
    env["BUILDGRAPH_BUILD_DIR"] = str(build_dir.absolute())
    env["BUILDGRAPH_SOURCE_DIR"] = str(script_path.parent.absolute())

    if variables:
        env["BUILDGRAPH_VARS"] = json.dumps(variables)
    if backend:
        env["BUILDGRAPH_BACKEND"] = backend
    if toolset:
        env["BUILDGRAPH_TOOLSET"] = toolset
    if config:
        env["BUILDGRAPH_CONFIG"] = str(config.absolute())

    logger.info("Running %s", script_path)
    for key in sorted(env):
        if key.startswith("BUILDGRAPH_"):
            logger.debug("  %s=%s", key, env[key])

    try:
        result = subprocess.run(
            [sys.executable, str(script_path)],
            env=env,
            cwd=script_path.parent,
        )
        return result.returncode
    except OSError as e:
        logger.error("Failed to run script: %s", e)
        return 1


def make_command(build_dir: Path, jobs: int | None = None) -> list[str] | None:
    """The make invocation for the makefile found in build_dir."""
    nmake_file = build_dir / "makefile.vc"
    if nmake_file.exists():
        nmake = shutil.which("nmake")
        if nmake is None:
            logger.error("nmake not found in PATH")
            return None
        return [nmake, "/NOLOGO", "/F", str(nmake_file)]

    if not (build_dir / "Makefile").exists():
        logger.error("No Makefile found in %s", build_dir)
        logger.info("Run 'buildgraph generate' first to create build files")
        return None

    make = shutil.which("make") or shutil.which("mingw32-make")
    if make is None:
        logger.error("make not found in PATH")
        return None
    cmd = [make, "-C", str(build_dir)]
    if jobs:
        cmd.extend(["-j", str(jobs)])
    return cmd


def cmd_generate(args: argparse.Namespace) -> int:
    """Run the generate phase.

    This command:
    1. Finds build.py in the current directory
    2. Checks the configuration file, if one is given
    3. Runs build.py, which builds the graph and runs the backend
    """
    setup_logging(args.verbose, args.debug)

    build_dir = Path(args.build_dir)
    variables, _ = parse_variables(getattr(args, "extra", []))

    script_path = getattr(args, "build_script", None)
    script: Path
    if script_path:
        script = Path(script_path)
        if not script.exists():
            logger.error("Build script not found: %s", script_path)
            return 1
    else:
        found_script = find_script("build.py")
        if found_script is None:
            logger.error("No build.py found in current directory")
            logger.info("Create a build.py file or run 'buildgraph init'")
            return 1
        script = found_script

    config_path = Path(args.config) if args.config else None
    if config_path is not None:
        from buildgraph.configure.config import load_config

        config = load_config(config_path)
        config.toolset()
        logger.debug("Configuration %s is valid", config_path)

    if args.toolset:
        from buildgraph.toolchains import check_pairing

        compiler, _, linker = args.toolset.partition("+")
        check_pairing(compiler, linker or "ld")

    build_dir.mkdir(parents=True, exist_ok=True)

    return run_script(
        script,
        build_dir,
        variables=variables,
        backend=args.backend,
        toolset=args.toolset,
        config=config_path,
    )


def cmd_build(args: argparse.Namespace) -> int:
    """Build targets by running make (or nmake) on the generated makefile."""
    setup_logging(args.verbose, args.debug)

    build_dir = Path(args.build_dir)
    cmd = make_command(build_dir, getattr(args, "jobs", None))
    if cmd is None:
        return 1
    cmd.extend(getattr(args, "targets", None) or [])

    logger.info("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd)
        return result.returncode
    except OSError as e:
        logger.error("Failed to run %s: %s", cmd[0], e)
        return 1


def cmd_clean(args: argparse.Namespace) -> int:
    """Clean generated files.

    Removes generated makefiles and Visual Studio files from the build
    directory, or the whole build directory with --all.
    """
    setup_logging(args.verbose, args.debug)

    build_dir = Path(args.build_dir)
    if not build_dir.exists():
        logger.info("Build directory does not exist: %s", build_dir)
        return 0

    if args.all:
        logger.info("Removing build directory: %s", build_dir)
        shutil.rmtree(build_dir)
        logger.info("Clean complete")
        return 0

    generated = [build_dir / "Makefile", build_dir / "makefile.vc"]
    generated.extend(build_dir.glob("*.sln"))
    generated.extend(build_dir.glob("*.vcxproj"))
    for path in generated:
        if path.exists():
            logger.info("Removing %s", path)
            path.unlink()
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Show information about the build script.

    Displays the docstring from build.py which should document
    available build variables and usage.
    """
    setup_logging(args.verbose, args.debug)

    script_path = getattr(args, "build_script", None)
    if script_path:
        script = Path(script_path)
        if not script.exists():
            logger.error("Build script not found: %s", script_path)
            return 1
    else:
        found_script = find_script("build.py")
        if found_script is None:
            logger.error("No build.py found in current directory")
            return 1
        script = found_script

    try:
        tree = ast.parse(script.read_text())
        docstring = ast.get_docstring(tree)
    except SyntaxError as e:
        logger.error("Failed to parse %s: %s", script, e)
        return 1

    print(f"Build script: {script}")
    print()
    if docstring:
        print(docstring)
    else:
        print("(No docstring found in build.py)")

    return 0


BUILD_TEMPLATE = '''\
#!/usr/bin/env python3
"""Build script for the project.

Variables:
    OPT - optimization level passed to the compiler (default: 2)
"""

from pathlib import Path

from buildgraph import (
    Application,
    ObjectFile,
    ObjectLibrary,
    Solution,
    get_backend,
    get_build_dir,
    get_toolset,
    get_var,
    make_generator,
    select_toolset,
)

build_dir = Path(get_build_dir())
source_dir = Path(__file__).parent
compiler, linker = get_toolset()
toolset = select_toolset(compiler, linker)

# Sources are absolute; outputs are relative to the build directory
core = ObjectLibrary(
    "core",
    depends=[ObjectFile(str(source_dir / "main.c"), output="main")],
    optimization=int(get_var("OPT", "2")),
)
app = Application("hello", depends=[core])
solution = Solution("hello", depends=[app])

generator = make_generator(get_backend(), toolset)
generator.generate(solution, build_dir)
'''


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new buildgraph project.

    Creates a template build.py file.
    """
    setup_logging(args.verbose, args.debug)

    build_py = Path("build.py")

    if build_py.exists() and not args.force:
        logger.error("build.py already exists (use --force to overwrite)")
        return 1

    build_py.write_text(BUILD_TEMPLATE)
    build_py.chmod(0o755)
    logger.info("Created %s", build_py)

    print("Project initialized!")
    print("Next steps:")
    print("  1. Edit build.py to define your build targets")
    print("  2. Run 'buildgraph generate' then 'buildgraph build'")

    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument(
        "-B", "--build-dir", default="build", help="Build directory (default: build)"
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the buildgraph CLI."""
    parser = argparse.ArgumentParser(
        prog="buildgraph",
        description="Build-graph driver that runs builds or writes Makefiles and Visual Studio projects.",
        epilog="Run 'buildgraph <command> --help' for command-specific help.",
    )
    from buildgraph import __version__

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # buildgraph info
    info_parser = subparsers.add_parser(
        "info", help="Show build script info and available variables"
    )
    add_common_args(info_parser)
    info_parser.add_argument("-b", "--build-script", help="Path to build.py script")
    info_parser.set_defaults(func=cmd_info)

    # buildgraph init
    init_parser = subparsers.add_parser("init", help="Initialize a new buildgraph project")
    init_parser.add_argument(
        "-f", "--force", action="store_true", help="Overwrite existing files"
    )
    add_common_args(init_parser)
    init_parser.set_defaults(func=cmd_init)

    # buildgraph generate
    gen_parser = subparsers.add_parser("generate", help="Run build.py to generate or build")
    add_common_args(gen_parser)
    gen_parser.add_argument("-b", "--build-script", help="Path to build.py script")
    gen_parser.add_argument("--backend", choices=BACKENDS, help="Backend to use")
    gen_parser.add_argument(
        "-t", "--toolset", metavar="COMPILER+LINKER", help="Toolset, e.g. clang+llvm-link"
    )
    gen_parser.add_argument("-c", "--config", help="Build configuration file (TOML)")
    gen_parser.add_argument("extra", nargs="*", help="Build variables (KEY=value)")
    gen_parser.set_defaults(func=cmd_generate)

    # buildgraph build
    build_parser = subparsers.add_parser("build", help="Build targets using make or nmake")
    add_common_args(build_parser)
    build_parser.add_argument("-j", "--jobs", type=int, help="Number of parallel jobs")
    build_parser.add_argument("targets", nargs="*", help="Targets to build")
    build_parser.set_defaults(func=cmd_build)

    # buildgraph clean
    clean_parser = subparsers.add_parser("clean", help="Clean generated files")
    add_common_args(clean_parser)
    clean_parser.add_argument(
        "-a", "--all", action="store_true", help="Remove entire build directory"
    )
    clean_parser.set_defaults(func=cmd_clean)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        result: int = args.func(args)
    except BuildGraphError as e:
        logger.error("%s", e)
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
