"""scaffoldgen command-line entry point.

Reads a config document (from ``--configuration`` or standard input), renders
every declared file from the templates directory, and runs the declared
post-generation commands.

Usage::

    scaffoldgen -c scaffold.json -t ./templates -o ./out
    cat scaffold.json | scaffoldgen -t ./templates --separator
"""

from __future__ import annotations

import argparse
import asyncio
import os
import signal
import sys
from pathlib import Path

from rich.markup import escape

from scaffoldgen.config import Config
from scaffoldgen.errors import CommandFailure, GenerationError, UsageError
from scaffoldgen.scaffolder.generator import GenerationResult, ProjectGenerator
from scaffoldgen.utils import (
    console,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130

CANCEL_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP")


# ---------------------------------------------------------------------------
# Argument handling
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scaffoldgen",
        description="Render project files from named templates and a config document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  scaffoldgen -c scaffold.json -t ./templates -o ./out\n"
            "  scaffoldgen -c scaffold.yaml -o ./out --project-name demo\n"
            "  cat scaffold.json | scaffoldgen -t ./templates --separator\n"
        ),
    )
    parser.add_argument(
        "--configuration", "-c",
        default=None,
        help="Path to the config document (default: read standard input)",
    )
    parser.add_argument(
        "--templates", "-t",
        default=None,
        help="Directory containing *.tmpl templates (default: working directory)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output root directory; omit to write every file to standard output",
    )
    parser.add_argument(
        "--separator", "-s",
        action="store_true",
        help="Stream mode only: print '---<name>' before each file",
    )
    parser.add_argument(
        "--project-name", "-p",
        default=None,
        help="Insert a project directory between the output root and each file path",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print each written file and command to standard error",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """Layer explicit CLI flags over the environment defaults."""
    config = Config.from_env()
    update: dict[str, object] = {
        "separator": args.separator,
        "verbose": args.verbose,
    }
    if args.configuration is not None:
        update["config_path"] = Path(args.configuration)
    if args.templates is not None:
        update["templates_dir"] = Path(args.templates)
    if args.output is not None:
        update["output_dir"] = Path(args.output)
    if args.project_name is not None:
        update["project_name"] = args.project_name
    return config.model_copy(update=update)


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


def _install_signal_handlers(cancel_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for name in CANCEL_SIGNALS:
        sig = getattr(signal, name, None)
        if sig is None:
            continue
        try:
            loop.add_signal_handler(sig, cancel_event.set)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform/loop (e.g. Windows).
            continue


async def run(config: Config, cancel_event: asyncio.Event | None = None) -> GenerationResult:
    """Run one generation with signal-driven cancellation."""
    if cancel_event is None:
        cancel_event = asyncio.Event()
        _install_signal_handlers(cancel_event)
    generator = ProjectGenerator(config, cancel_event=cancel_event)
    return await generator.generate()


def _detach_stdout() -> None:
    """Point stdout at the null device after its reader has gone away.

    Without this the interpreter's final flush of stdout raises
    ``BrokenPipeError`` again and prints a traceback on exit.
    """
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(devnull, fd)
    finally:
        os.close(devnull)


def _report(config: Config, result: GenerationResult) -> None:
    if result.file_count == 0:
        print_warning("Config declares no files; nothing was rendered")
    if config.stream_mode and not config.verbose:
        return
    print_success(
        f"Generated {result.file_count} file(s) in {format_duration(result.duration)}"
    )
    if config.verbose:
        print_summary_table(
            {
                "Output": str(config.generation_root or "<stdout>"),
                "Files": str(result.file_count),
                "Commands": str(len(result.commands_run)),
                "Duration": format_duration(result.duration),
            },
            title="scaffoldgen",
        )


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``scaffoldgen`` and ``python -m scaffoldgen``."""
    args = build_parser().parse_args(argv)
    config = config_from_args(args)
    cancel_event = asyncio.Event()

    async def _main() -> GenerationResult:
        _install_signal_handlers(cancel_event)
        return await run(config, cancel_event)

    try:
        result = asyncio.run(_main())
    except UsageError as exc:
        print_error(f"Error: {exc}")
        return EXIT_USAGE
    except CommandFailure as exc:
        print_error(f"Error: {exc}")
        if exc.output.strip():
            console.print(f"[dim]{escape(exc.output.rstrip())}[/dim]")
        return EXIT_CANCELLED if cancel_event.is_set() else EXIT_FAILURE
    except GenerationError as exc:
        if isinstance(exc.__cause__, BrokenPipeError):
            _detach_stdout()
        print_error(f"Error: {exc}")
        return EXIT_FAILURE
    except BrokenPipeError:
        _detach_stdout()
        print_error("Error: standard output was closed before generation finished")
        return EXIT_FAILURE

    _report(config, result)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
