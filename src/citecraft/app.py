"""citecraft — CLI entry point.

Author, inspect and preview citation templates.

Usage:
    citecraft "[Author], [Year]."                           # tokenize into parts
    citecraft "Smith 2020" --mark 6:10                       # mark spans, compile
    citecraft "[{Smith}+[%s]]" --compiled --arg Year         # parse compiled form
    citecraft "[{Smith, }+[%s]]" --value 2020                # render
    citecraft "[{Smith, }+[%s]]" --value 2020 --skip         # render with a missing value
    citecraft "[[%s]+{, }+[%s]]" --combos --arg A --arg B    # every argument subset
    citecraft "Smith 2020" --ui                              # interactive TUI
    citecraft --env                                          # resolved configuration
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from citecraft.config import CiteCraftConfig, load_config, print_env
from citecraft.lab import CombinationLab
from citecraft.renderers import RenderError, resolve_renderer
from citecraft.template.addends import addend_kind
from citecraft.template.segments import EXPR, compile_segments, mark_range, new_doc, normalize
from citecraft.template.tokenizer import parse_compiled, tokenize_citation_template

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Argument parsing
# ------------------------------------------------------------------

def _offsets(value: str) -> Tuple[int, int]:
    start, sep, end = value.partition(":")
    try:
        if not sep:
            raise ValueError
        return int(start), int(end)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected START:END, got '{value}'")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="citecraft",
        description="Author, compile and preview citation templates.",
    )

    # Input
    parser.add_argument(
        "text",
        nargs="?",
        help="Citation text, citation template or compiled template",
    )
    parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read the text from stdin",
    )

    # Modes
    parser.add_argument(
        "--mark",
        action="append",
        type=_offsets,
        metavar="START:END",
        help="Mark a span of plain text as an expression (repeatable) and compile",
    )
    parser.add_argument(
        "--compiled",
        action="store_true",
        help="Treat the text as a compiled template and parse it into parts",
    )
    parser.add_argument(
        "--value",
        action="append",
        dest="values",
        metavar="VALUE",
        help="Render the compiled template with this value (repeatable, in order)",
    )
    parser.add_argument(
        "--skip",
        action="append_const",
        const=None,
        dest="values",
        help="Render with an absent value at this position",
    )
    parser.add_argument(
        "--combos",
        action="store_true",
        help="Render every non-empty subset of the --arg values",
    )
    parser.add_argument(
        "--arg",
        action="append",
        dest="args",
        metavar="NAME",
        help="Argument name (repeatable); used by --compiled and --combos",
    )

    # Output
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        dest="format",
        help="Output format: text (default) or json",
    )

    # Config
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a .yaml or .json config file",
    )
    parser.add_argument(
        "--renderer",
        help="Renderer name or dotted class path (default from config: bracket)",
    )
    parser.add_argument(
        "--max-combinations",
        type=int,
        help="Largest number of argument subsets rendered in full",
    )
    parser.add_argument(
        "--env",
        action="store_true",
        help="Print resolved configuration, then exit",
    )

    # TUI
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch the interactive TUI (requires citecraft[ui])",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every structural edit",
    )

    return parser


def _configure_logging(verbose: bool, console: Console) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=False)],
        force=True,
    )


def _resolve_config(args: argparse.Namespace) -> CiteCraftConfig:
    config = load_config(project_dir=Path.cwd(), config_file=args.config)
    if args.renderer:
        config.renderer = args.renderer
    if args.max_combinations is not None:
        config.max_combinations = args.max_combinations
    logger.debug("Resolved config: %s", config)
    return config


# ------------------------------------------------------------------
# Modes
# ------------------------------------------------------------------

def _parts_payload(parts) -> List[Dict[str, Any]]:
    return [
        {"kind": addend_kind(p), "display": p.display, "compiled": p.compiled}
        for p in parts
    ]


def run_parse(console: Console, text: str, args: argparse.Namespace) -> int:
    """Tokenize a citation template (or parse a compiled one) into parts."""
    if args.compiled:
        parts = parse_compiled(text, names=args.args)
    else:
        parts = tokenize_citation_template(text)
    variables = [name for p in parts for name in p.variables()]
    compiled = "".join(p.compiled for p in parts)

    if args.format == "json":
        print(json.dumps({
            "parts": _parts_payload(parts),
            "variables": variables,
            "compiled": compiled,
        }, indent=2, ensure_ascii=False))
        return 0

    table = Table(title="Parts")
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Display")
    table.add_column("Compiled")
    for i, p in enumerate(parts):
        table.add_row(str(i), addend_kind(p), Text(repr(p.display)), Text(p.compiled))
    console.print(table)
    console.print(f"[bold]Variables:[/] {escape(', '.join(variables)) or '(none)'}")
    console.print("[bold]Compiled:[/] ", end="")
    console.print(compiled, markup=False, highlight=False)
    return 0


def run_mark(console: Console, text: str, args: argparse.Namespace) -> int:
    """Mark spans of plain text as expressions and compile."""
    doc = normalize(new_doc(text))
    for start, end in args.mark:
        if not (0 <= min(start, end) and max(start, end) <= len(text)):
            console.print(f"[red]Error:[/] span {start}:{end} is outside the text (length {len(text)}).")
            return 1
        doc = mark_range(doc, start, end, EXPR)
    compiled = compile_segments(doc)
    arg_names = [f"Arg{i + 1}" for i, seg in enumerate(s for s in doc if s.type == EXPR)]

    if args.format == "json":
        print(json.dumps({
            "segments": [{"type": s.type, "text": s.text} for s in doc],
            "compiled": compiled,
            "arg_names": arg_names,
        }, indent=2, ensure_ascii=False))
        return 0

    for seg in doc:
        style = "bold cyan" if seg.type == EXPR else "dim"
        console.print(f"  [{style}]{seg.type:<8}[/] ", end="")
        console.print(repr(seg.text), markup=False, highlight=False)
    console.print("[bold]Compiled:[/] ", end="")
    console.print(compiled, markup=False, highlight=False)
    return 0


def run_render(console: Console, text: str, args: argparse.Namespace, config: CiteCraftConfig) -> int:
    """Render a compiled template with positional values."""
    renderer = resolve_renderer(config.renderer)
    try:
        output = renderer.format(text, *args.values)
    except RenderError as exc:
        console.print(f"[red]Renderer error:[/] {escape(str(exc))}", highlight=False)
        return 1
    if args.format == "json":
        print(json.dumps({"output": output}, ensure_ascii=False))
    else:
        print(output)
    return 0


def run_combos(console: Console, text: str, args: argparse.Namespace, config: CiteCraftConfig) -> int:
    """Render every non-empty subset of the given arguments."""
    lab = CombinationLab(
        resolve_renderer(config.renderer),
        max_combinations=config.max_combinations,
        overflow=config.overflow,
        sample_budget=config.sample_budget,
        seed=config.sample_seed,
    )
    lab.template = text
    lab.set_arguments(args.args or [])
    rows = lab.compute_combo_rows()

    if args.format == "json":
        print(json.dumps([
            {"label": r.label, "inputs": r.inputs, "output": r.output, "advisory": r.advisory}
            for r in rows
        ], indent=2, ensure_ascii=False))
        return 0

    table = Table(title=f"Combinations ({lab.combo_count})")
    table.add_column("Arguments")
    table.add_column("Output")
    for row in rows:
        table.add_row(Text(row.label), Text(row.output))
    console.print(table)
    return 0


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    console = Console()
    err_console = Console(stderr=True)
    _configure_logging(args.verbose, err_console)

    try:
        config = _resolve_config(args)
    except (OSError, ValueError) as exc:
        err_console.print(f"[red]Error:[/] could not load config: {escape(str(exc))}", highlight=False)
        return 1

    if args.env:
        console.print(print_env(config), markup=False, highlight=False)
        return 0

    if args.stdin:
        text = sys.stdin.read()
    elif args.text is not None:
        text = args.text
    elif args.ui:
        text = ""
    else:
        parser.print_help()
        return 1

    if args.ui:
        try:
            from citecraft.tui.app import launch_tui
        except ImportError:
            err_console.print(
                "[red]Error:[/] Textual is required for --ui mode. "
                "Install with: [bright_cyan]pip install citecraft\\[ui][/]"
            )
            return 1
        launch_tui(seed_text=text, config=config)
        return 0

    try:
        if args.mark:
            return run_mark(console, text, args)
        if args.values:
            return run_render(console, text, args, config)
        if args.combos:
            return run_combos(console, text, args, config)
        return run_parse(console, text, args)
    except ValueError as exc:
        err_console.print(f"[red]Error:[/] {escape(str(exc))}", highlight=False)
        return 1


def cli() -> None:
    """Main entry point for the citecraft command."""
    try:
        exit_code = main()
    except KeyboardInterrupt:
        Console(stderr=True).print("\n[dim]Interrupted.[/]")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
