"""Command-line interface for Predictive Text Studio.

WHY: Building a lexical model package should not require running the
server. The CLI wires the same worker used by the HTTP API behind three
subcommands: a one-shot package build, a catalog refresh, and the server
itself.

HOW: Uses argparse subcommands. ``compile`` creates a worker over a fresh
InMemoryStorage, sets the project metadata from the flags, adds every
input file as a dictionary source and writes the stored .kmp. Lifecycle
events are reported through the worker's callbacks. ``catalog`` fetches
the Keyman language list and prints it as TSV on stdout. ``serve`` starts
uvicorn. Async work runs via asyncio.run().

RULES:
- Status messages go to stderr (not stdout)
- Input extensions are validated against SUPPORTED_SOURCE_EXTENSIONS
  before any parsing
- --bcp47 is required for compile; the package cannot build without it
- Output defaults to {model_id}.kmp in the current directory
- Exit codes: 0 success, 1 any failure
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import httpx
import jsonschema

from predictive_text_studio import __version__
from predictive_text_studio.api.client import KeymanAPI
from predictive_text_studio.api.models import KeymanAPIError
from predictive_text_studio.compiler import ModelCompilerError
from predictive_text_studio.config import SERVER_HOST, SERVER_PORT, SUPPORTED_SOURCE_EXTENSIONS
from predictive_text_studio.core.read_wordlist import WordListFormatError
from predictive_text_studio.core.types import Language, ProjectMetadataPatch
from predictive_text_studio.storage.memory import InMemoryStorage
from predictive_text_studio.worker.impl import CompileState, PredictiveTextStudioWorkerImpl


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


# ---------------------------------------------------------------------------
# compile
# ---------------------------------------------------------------------------


def _validate_inputs(paths: List[Path]) -> Optional[str]:
    """Return an error message for the first unusable input, or None."""
    for path in paths:
        if not path.is_file():
            return "Error: file not found: {}".format(path)
        if path.suffix.lower() not in SUPPORTED_SOURCE_EXTENSIONS:
            return "Error: unsupported file type '{}' ({}). Supported: {}".format(
                path.suffix, path.name, ", ".join(sorted(SUPPORTED_SOURCE_EXTENSIONS))
            )
    return None


def _attach_status_callbacks(worker: PredictiveTextStudioWorkerImpl) -> None:
    worker.on_package_compile_start(lambda: _status("  Compiling package..."))
    worker.on_package_compile_error(lambda err: _status("  Compile failed: {}".format(err)))
    worker.on_package_compile_success(
        lambda kmp: _status("  Package compiled ({:,} bytes)".format(len(kmp)))
    )


async def _run_compile(args: argparse.Namespace) -> int:
    inputs = [Path(p) for p in args.inputs]
    error = _validate_inputs(inputs)
    if error is not None:
        _status(error)
        return 1

    worker = PredictiveTextStudioWorkerImpl(storage=InMemoryStorage())
    _attach_status_callbacks(worker)

    # Metadata first: each added source triggers a compile that needs the tag
    await worker.set_project_data(ProjectMetadataPatch(
        languages=[Language(name=args.language, id=args.bcp47)],
        author_name=args.author,
        model_id=args.model_id,
        copyright=args.copyright,
        version=args.model_version,
        dictionary_name=args.name,
    ))
    metadata = await worker.fetch_all_current_project_metadata()
    _status("Model: {}".format(metadata.model_id))

    for path in inputs:
        _status("Adding {}...".format(path.name))
        try:
            contents = await asyncio.to_thread(path.read_bytes)
            words = await worker.add_dictionary_source_to_project(path.name, contents)
        except WordListFormatError as exc:
            _status("Error: {} is not a usable word list: {}".format(path.name, exc))
            return 1
        except (ModelCompilerError, jsonschema.ValidationError) as exc:
            _status("Error: package compile failed: {}".format(exc))
            return 1
        _status("  {} words".format(words))

    if worker.last_compile_state is not CompileState.COMPILE_SUCCEEDED:
        return 1

    if len(inputs) > 1:
        _status("Note: only {} was compiled into the package".format(inputs[0].name))

    kmp = await worker.get_kmp_package()
    if kmp is None:
        _status("Error: no package was produced")
        return 1

    output = Path(args.output) if args.output else Path("{}.kmp".format(metadata.model_id))
    await asyncio.to_thread(output.write_bytes, kmp)
    _status("Saved: {}".format(output))
    return 0


# ---------------------------------------------------------------------------
# catalog
# ---------------------------------------------------------------------------


async def _run_catalog(args: argparse.Namespace) -> int:
    worker = PredictiveTextStudioWorkerImpl(
        storage=InMemoryStorage(),
        keyman_api=KeymanAPI(url=args.url),
    )
    _status("Fetching Keyman language catalog...")
    try:
        await worker.initialize()
    except (KeymanAPIError, httpx.HTTPError) as exc:
        _status("Error: catalog fetch failed: {}".format(exc))
        return 1

    entries = await worker.get_data_from_storage()
    for entry in entries:
        print("{}\t{}".format(entry.bcp47_tag, entry.language))
    _status("{} languages".format(len(entries)))
    return 0


# ---------------------------------------------------------------------------
# Parser and entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with the compile, catalog and serve subcommands."""
    parser = argparse.ArgumentParser(
        prog="predictive-text-studio",
        description="Build Keyman lexical model packages (.kmp) from word lists.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s {}".format(__version__),
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_parser = subparsers.add_parser(
        "compile",
        help="Compile word lists into a .kmp package.",
    )
    compile_parser.add_argument(
        "inputs",
        nargs="+",
        help="Word list files (.xlsx, .tsv, .txt).",
    )
    compile_parser.add_argument(
        "--bcp47",
        required=True,
        help="BCP-47 tag of the model's language, e.g. str-Latn.",
    )
    compile_parser.add_argument(
        "--language",
        default="",
        help="Language display name.",
    )
    compile_parser.add_argument(
        "--author",
        default=None,
        help="Model author (default: UnknownAuthor).",
    )
    compile_parser.add_argument(
        "--model-id",
        default=None,
        help="Model identifier (default: {author}.{bcp47}.{language}).",
    )
    compile_parser.add_argument(
        "--copyright",
        default=None,
        help="Copyright string for the package manifest.",
    )
    compile_parser.add_argument(
        "--model-version",
        default=None,
        help="Model version (default: 1.0.0).",
    )
    compile_parser.add_argument(
        "--name",
        default=None,
        help="Human-readable model name.",
    )
    compile_parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output .kmp path (default: {model_id}.kmp in the current directory).",
    )

    catalog_parser = subparsers.add_parser(
        "catalog",
        help="Print the Keyman language catalog as TSV (bcp47<TAB>name).",
    )
    catalog_parser.add_argument(
        "--url",
        default=None,
        help="Keyman languages endpoint (default: KEYMAN_API_URL).",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP API server.",
    )
    serve_parser.add_argument(
        "--host",
        default=SERVER_HOST,
        help="Bind address (default: %(default)s).",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=SERVER_PORT,
        help="Bind port (default: %(default)s).",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Exits with the subcommand's return code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        from predictive_text_studio.server.app import run_api

        run_api(host=args.host, port=args.port)
        return

    if args.command == "compile":
        code = asyncio.run(_run_compile(args))
    else:
        code = asyncio.run(_run_catalog(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
