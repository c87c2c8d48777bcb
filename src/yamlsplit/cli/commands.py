"""CLI command implementations"""

import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Annotated, Iterator, Optional

import typer

from yamlsplit.config import Settings, load_config
from yamlsplit.core.errors import SplitError
from yamlsplit.core.pipeline import run_count, run_split


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
STDIN_PATH = "-"


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT, stream=sys.stderr, force=True)


def _quiet_exit() -> None:
    """The reader closed our stdout: stop without a traceback, like `head` expects."""
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        try:
            os.dup2(devnull, sys.stdout.fileno())
        finally:
            os.close(devnull)
    except (OSError, ValueError):
        pass
    raise typer.Exit(1)


@contextmanager
def _open_input(path: Optional[str]) -> Iterator[IO[bytes]]:
    """Yield a binary input stream for path, or standard input for None / '-'."""
    if path is None or path == STDIN_PATH:
        yield typer.get_binary_stream("stdin")
        return
    try:
        f = open(path, "rb")
    except OSError as e:
        _fail(f"Cannot open {path}", e)
    with f:
        yield f


def _stem(path: Optional[str]) -> Optional[str]:
    if path is None or path == STDIN_PATH:
        return None
    return Path(path).stem


def split_cmd(
    path: Annotated[Optional[str], typer.Argument(help="YAML stream to split; omit or '-' for standard input")] = None,
    mode: Annotated[Optional[str], typer.Option("--mode", "-m", help="stream, files or chunks")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory for --mode files")] = None,
    template: Annotated[Optional[str], typer.Option("--name-template", help="File name template (stem, index, number)")] = None,
    max_docs: Annotated[Optional[int], typer.Option("--max-docs", help="Stop after N documents; 0 = unlimited")] = None,
    skip_empty: Annotated[bool, typer.Option("--skip-empty", help="Drop documents with no content")] = False,
    no_detect: Annotated[bool, typer.Option("--no-detect-encoding", help="Assume UTF-8 input")] = False,
    chunk_size: Annotated[Optional[int], typer.Option("--chunk-size", help="Bytes per read from the input")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output to stderr")] = False,
    ):
    """Split a multi-document YAML stream into its individual documents."""
    settings = _settings(overrides={
        "output_mode": mode, "output_dir": out, "name_template": template,
        "max_documents": max_docs, "chunk_size": chunk_size,
        "skip_empty": skip_empty or None,
        "detect_encoding": False if no_detect else None,
    })
    _configure_logging("DEBUG" if verbose else settings.log_level)

    try:
        with _open_input(path) as source:
            results = run_split(source, settings, typer.get_binary_stream("stdout"), stem=_stem(path))
    except SplitError as e:
        _fail("Split failed", e)
    except ValueError as e:
        _fail(str(e))
    except BrokenPipeError:
        _quiet_exit()
    except OSError as e:
        _fail("Cannot write output", e)

    if settings.output_mode == "files":
        for index, out_path in results:
            typer.echo(f"  {index + 1} -> {out_path}")
        typer.echo(f"Wrote {len(results)} document(s) to {settings.output_dir}/")


def count_cmd(
    path: Annotated[Optional[str], typer.Argument(help="YAML stream to read; omit or '-' for standard input")] = None,
    skip_empty: Annotated[bool, typer.Option("--skip-empty", help="Do not count documents with no content")] = False,
    no_detect: Annotated[bool, typer.Option("--no-detect-encoding", help="Assume UTF-8 input")] = False,
    ):
    """Print the number of documents in a YAML stream."""
    settings = _settings(overrides={
        "skip_empty": skip_empty or None,
        "detect_encoding": False if no_detect else None,
    })
    _configure_logging(settings.log_level)

    try:
        with _open_input(path) as source:
            count = run_count(source, settings)
    except SplitError as e:
        _fail("Split failed", e)
    typer.echo(count)
