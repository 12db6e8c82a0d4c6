"""
Yggdra Command-Line Interface.

Provides commands to compile and inspect Yggdra files.

Usage:
    ygg build App.ygg               # App.vue (or App.js for a server)
    ygg build App.ygg --stdout
    ygg check App.ygg               # Report dropped lines
    ygg watch src/ -o dist/         # Recompile on changes
    ygg ast App.ygg                 # Debug: dump the tree
    ygg tokens App.ygg              # Debug: dump the line tokens
"""

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional

from yggdra import __version__
from yggdra.compiler import compile_with_diagnostics
from yggdra.compiler.ast_nodes import ASTNode, Condition, Loop, Program, PseudoClass, UIElement
from yggdra.compiler.lexer import Lexer
from yggdra.compiler.parser import Parser
from yggdra.config import ProjectConfig, load_config
from yggdra.utils.diagnostics import Diagnostic, DiagnosticLevel
from yggdra.utils.errors import YggdraError

logger = logging.getLogger("yggdra.cli")

SOURCE_SUFFIX = ".ygg"


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"

    BOLD = "\033[1m"
    DIM = "\033[2m"

    RESET = "\033[0m"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.CYAN = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.DIM = ""
        cls.RESET = ""


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


_init_colors()


def _use_color() -> bool:
    return sys.stderr.isatty() and not os.environ.get("NO_COLOR")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ygg",
        description="Yggdra - compile .ygg files to Vue components and Express servers",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        aliases=["b"],
        help="Compile a .ygg file",
    )
    build_parser.add_argument(
        "input",
        type=Path,
        help="Input Yggdra file",
    )
    build_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file or directory (default: input with .vue or .js extension)",
    )
    build_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the generated code instead of writing a file",
    )
    build_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when the parser reports errors",
    )

    # Check command
    check_parser = subparsers.add_parser(
        "check",
        help="Parse a file and report diagnostics",
    )
    check_parser.add_argument(
        "input",
        type=Path,
        help="Input Yggdra file",
    )

    # Watch command
    watch_parser = subparsers.add_parser(
        "watch",
        aliases=["w"],
        help="Watch files and recompile on changes",
    )
    watch_parser.add_argument(
        "input",
        type=Path,
        help="Input Yggdra file or directory to watch",
    )
    watch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file or directory",
    )
    watch_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when the parser reports errors",
    )

    # Tokens command (debug)
    tokens_parser = subparsers.add_parser(
        "tokens",
        help="Show line tokens (debug)",
    )
    tokens_parser.add_argument(
        "input",
        type=Path,
        help="Input Yggdra file",
    )

    # AST command (debug)
    ast_parser = subparsers.add_parser(
        "ast",
        help="Show the syntax tree (debug)",
    )
    ast_parser.add_argument(
        "input",
        type=Path,
        help="Input Yggdra file",
    )

    return parser


# =============================================================================
# Helpers
# =============================================================================


def output_path_for(
    input_path: Path,
    suffix: str,
    output: Optional[Path] = None,
    out_dir: Optional[Path] = None,
) -> Path:
    """
    Where a compiled file goes.

    An explicit output wins; a directory output (existing, or given without
    a suffix) receives ``<stem><suffix>``. Otherwise the configured out_dir,
    otherwise beside the source.
    """
    if output is not None:
        if output.is_dir() or not output.suffix:
            return output / input_path.with_suffix(suffix).name
        return output
    if out_dir is not None:
        return out_dir / input_path.with_suffix(suffix).name
    return input_path.with_suffix(suffix)


def _print_diagnostics(diagnostics: list[Diagnostic], source: str) -> None:
    use_color = _use_color()
    for diagnostic in diagnostics:
        print(diagnostic.render(source, use_color=use_color), file=sys.stderr)
        print(file=sys.stderr)


def compile_to_file(
    input_path: Path,
    output: Optional[Path],
    config: ProjectConfig,
    strict: bool = False,
) -> Optional[Path]:
    """
    Compile one file and write the result.

    Returns:
        The written path, or None when compilation failed; nothing is
        written on failure.
    """
    source = input_path.read_text(encoding="utf-8")
    result = compile_with_diagnostics(source, input_path, strict or config.strict)
    _print_diagnostics(result.diagnostics, source)

    if not result.success:
        print(f"{Colors.RED}Compilation error:{Colors.RESET} {result.error}", file=sys.stderr)
        return None

    target = output_path_for(input_path, result.suffix, output, config.out_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(result.output, encoding="utf-8")
    logger.debug("wrote %s", target)
    return target


# =============================================================================
# Commands
# =============================================================================


def cmd_build(args: argparse.Namespace) -> int:
    """Handle the build command."""
    input_path: Path = args.input

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        config = load_config()
        if args.stdout:
            source = input_path.read_text(encoding="utf-8")
            result = compile_with_diagnostics(source, input_path, args.strict or config.strict)
            _print_diagnostics(result.diagnostics, source)
            if not result.success:
                print(f"{Colors.RED}Compilation error:{Colors.RESET} {result.error}", file=sys.stderr)
                return 1
            print(result.output, end="")
            return 0

        target = compile_to_file(input_path, args.output, config, args.strict)
        if target is None:
            return 1
        print(f"{Colors.GREEN}Compiled:{Colors.RESET} {input_path} -> {target}")
        return 0

    except YggdraError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    input_path: Path = args.input

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        source = input_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1

    parser = Parser(source, str(input_path))
    parser.parse()
    diagnostics = parser.get_diagnostics()

    if not diagnostics:
        print(f"{Colors.GREEN}OK:{Colors.RESET} {input_path} (no problems found)")
        return 0

    _print_diagnostics(diagnostics, source)
    errors = sum(1 for d in diagnostics if d.level == DiagnosticLevel.ERROR)
    warnings = len(diagnostics) - errors
    summary = f"{input_path}: {errors} error(s), {warnings} warning(s)"
    if errors:
        print(f"{Colors.RED}Failed:{Colors.RESET} {summary}", file=sys.stderr)
        return 1
    print(f"{Colors.YELLOW}OK:{Colors.RESET} {summary}")
    return 0


def _watched_files(input_path: Path) -> list[Path]:
    if input_path.is_file():
        return [input_path]
    return sorted(input_path.rglob(f"*{SOURCE_SUFFIX}"))


def cmd_watch(args: argparse.Namespace) -> int:
    """Handle the watch command - watch and recompile on changes."""
    input_path: Path = args.input

    if not input_path.exists():
        print(f"Error: Path not found: {input_path}", file=sys.stderr)
        return 1

    try:
        config = load_config()
    except YggdraError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1

    output = args.output
    if output is not None and input_path.is_dir() and output.suffix:
        print("Error: --output must be a directory when watching a directory", file=sys.stderr)
        return 1

    print(f"{Colors.BOLD}Watching for changes...{Colors.RESET}")
    print(f"  Input: {input_path}")
    print(f"  Output: {output or config.out_dir or 'beside sources'}")
    print("Press Ctrl+C to stop\n")

    def compile_one(filepath: Path) -> None:
        stamp = time.strftime("%H:%M:%S")
        try:
            target = compile_to_file(filepath, output, config, args.strict)
        except OSError as e:
            print(f"{Colors.RED}[{stamp}] Error:{Colors.RESET} {e}")
            return
        if target is not None:
            print(f"{Colors.GREEN}[{stamp}] Compiled:{Colors.RESET} {filepath} -> {target}")
        else:
            print(f"{Colors.RED}[{stamp}] Failed:{Colors.RESET} {filepath}")

    last_mtime: dict[Path, float] = {}
    try:
        while True:
            for filepath in _watched_files(input_path):
                try:
                    mtime = filepath.stat().st_mtime
                except FileNotFoundError:
                    continue
                if last_mtime.get(filepath) != mtime:
                    last_mtime[filepath] = mtime
                    compile_one(filepath)
            time.sleep(config.watch_interval)

    except KeyboardInterrupt:
        print(f"\n{Colors.DIM}Watch stopped{Colors.RESET}")
    return 0


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle the tokens command (debug)."""
    input_path: Path = args.input

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    source = input_path.read_text(encoding="utf-8")
    for token in Lexer(source, str(input_path)).tokenize():
        print(token)
    return 0


def cmd_ast(args: argparse.Namespace) -> int:
    """Handle the ast command (debug)."""
    input_path: Path = args.input

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    source = input_path.read_text(encoding="utf-8")
    program = Parser(source, str(input_path)).parse()
    print(format_ast(program))
    return 0


def format_ast(program: Program) -> str:
    """Readable dump of a program for the ast command."""
    script = program.script
    lines = ["Program"]
    for state in script.state:
        lines.append(f"  State {state.type_name} {state.name} = {state.value}")
    for function in script.functions:
        lines.append(f"  Function {function.name}({', '.join(function.parameters)})")
    for service in script.services:
        lines.append(f"  Service {service.name} -> {service.base_url}")
        for method in service.methods:
            lines.append(f"    {method.verb.upper()} {method.name} {method.path}")
    for use in script.imports:
        lines.append(f"  Use {use.source} as {use.alias}")
    if script.lifecycle is not None:
        lines.append(f"  OnMount ({len(script.lifecycle.statements)} statements)")
    if script.server is not None:
        server = script.server
        lines.append(f"  Server {server.name} port={server.port or 'default'}")
        for state in server.state:
            lines.append(f"    State {state.name} = {state.value}")
        for route in server.routes:
            lines.append(f"    {route.verb.upper()} {route.name} {route.path}")

    def walk(node: ASTNode, depth: int) -> None:
        pad = "  " * depth
        if isinstance(node, UIElement):
            tag = f" tag={node.explicit_tag}" if node.explicit_tag else ""
            lines.append(f"{pad}{node.element_type}{tag}")
            for prop in node.properties:
                kind = "dynamic" if prop.is_dynamic else "static"
                lines.append(f"{pad}  .{prop.key} = {prop.value!r} ({kind})")
        elif isinstance(node, PseudoClass):
            lines.append(f"{pad}&{node.selector}")
            for prop in node.properties:
                lines.append(f"{pad}  .{prop.key} = {prop.value!r}")
        elif isinstance(node, Condition):
            lines.append(f"{pad}{node.branch} {node.expression or ''}".rstrip())
        elif isinstance(node, Loop):
            bindings = f"{node.item}, {node.index}" if node.index else node.item
            key = f" key={node.key}" if node.key else ""
            lines.append(f"{pad}loop {bindings} in {node.collection}{key}")
        for child in getattr(node, "children", ()):
            walk(child, depth + 1)

    for child in program.children:
        walk(child, 1)
    return "\n".join(lines)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return 0

    command_handlers = {
        "build": cmd_build,
        "b": cmd_build,
        "check": cmd_check,
        "watch": cmd_watch,
        "w": cmd_watch,
        "tokens": cmd_tokens,
        "ast": cmd_ast,
    }

    handler = command_handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
