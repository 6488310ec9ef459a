"""Command-line interface for the Markdown to DOCX exporter.

WHY: Users need a simple way to export a note to Word from the terminal.
The CLI wires together the full pipeline — input reading, the resource
loader, the conversion pass, pluggable renderers, and file saving —
behind a single command.

HOW: Uses argparse to accept an input file (or "-" for stdin), the
renderers to run, the output directory, and the base directory images
are resolved against. Runs the async pipeline via asyncio.run(). Status
messages go to stderr; output files are saved next to the source (or to
--output-dir). --open launches the first saved file with the default
application.

RULES:
- Positional argument: input markup file path, or "-" for stdin
- --formats: comma-separated renderer keys (default: docx)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (report-2.docx)
- Stdin input uses DEFAULT_OUTPUT_STEM ("exported-document")
- Status output goes to stderr (not stdout); logging also goes to stderr
- Image and citation failures are warnings, never fatal
- Exit code 1 for a missing input, bad output directory, or unknown format
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from docx_export.config import BIBLIOGRAPHY_TITLE, DEFAULT_OUTPUT_STEM, IMAGE_TARGET_WIDTH
from docx_export.core.assembler import DocumentAssembler
from docx_export.core.ir import BlockKind
from docx_export.loader import ResourceLoader
from docx_export.renderers import DEFAULT_RENDERERS, RENDERERS
from docx_export.renderers.base import RendererOutput


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed immediately."""
    print(msg, file=sys.stderr, flush=True)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding numeric suffix on conflict.

    WHY: Users export the same note repeatedly while editing it.
    Overwriting a file that is still open in Word fails, and silently
    replacing an earlier export loses work.

    RULES:
    - First attempt: {stem}{suffix} (e.g. report.docx)
    - Conflict: split suffix at last dot, insert counter before extension
      (e.g. report-2.docx, report-preview-2.txt)
    - Counter starts at 2 and increments

    Args:
        stem: Source filename stem (without extension).
        suffix: Renderer's suffix (e.g. ".docx").
        output_dir: Directory to save the output file.

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx >= 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(
    output: RendererOutput,
    stem: str,
    output_dir: Path,
) -> Path:
    """Save a single renderer output to disk and return its path."""
    path = _resolve_output_path(stem, output.suffix, output_dir)

    if isinstance(output.content, bytes):
        path.write_bytes(output.content)
    else:
        path.write_text(output.content, encoding="utf-8")

    return path


def _open_with_default_app(path: Path) -> None:
    if sys.platform == "darwin":
        subprocess.Popen(["open", str(path)])
    elif sys.platform == "win32":
        subprocess.Popen(["cmd", "/c", "start", "", str(path)])
    else:
        subprocess.Popen(["xdg-open", str(path)])


def _parse_formats(value: Optional[str]) -> List[str]:
    if not value:
        return list(DEFAULT_RENDERERS)
    keys = [f.strip() for f in value.split(",") if f.strip()]
    for key in keys:
        if key not in RENDERERS:
            available = ", ".join(sorted(RENDERERS.keys()))
            print(
                "Error: Unknown format '{}'. Available formats: {}".format(key, available),
                file=sys.stderr,
            )
            sys.exit(1)
    return keys


async def _run_pipeline(args: argparse.Namespace) -> List[Path]:
    """Execute the full export pipeline.

    HOW: Reads the markup, converts it inside a ResourceLoader context,
    runs the selected renderers, and saves every output file.

    Returns:
        Paths of the saved files, in renderer order.
    """
    format_keys = _parse_formats(args.formats)

    if args.input_file == "-":
        markup = sys.stdin.read()
        stem = DEFAULT_OUTPUT_STEM
        default_dir = Path.cwd()
    else:
        input_path = Path(args.input_file).resolve()
        if not input_path.is_file():
            print("Error: File not found: {}".format(input_path), file=sys.stderr)
            sys.exit(1)
        markup = input_path.read_text(encoding="utf-8")
        stem = input_path.stem
        default_dir = input_path.parent

    output_dir = Path(args.output_dir).resolve() if args.output_dir else default_dir
    if not output_dir.is_dir():
        print("Error: Output directory does not exist: {}".format(output_dir), file=sys.stderr)
        sys.exit(1)

    base_dir = Path(args.base_dir).resolve() if args.base_dir else default_dir

    _status("Exporting {}...".format(stem))
    async with ResourceLoader(base_dir=base_dir) as loader:
        assembler = DocumentAssembler(
            loader,
            image_width=args.image_width,
            bibliography_title=args.bibliography_title,
        )
        document = await assembler.convert(markup)

    headings = sum(1 for b in document.blocks if b.kind is BlockKind.HEADING)
    _status("  {} blocks, {} headings, {} citations".format(
        len(document.blocks), headings, len(document.citations),
    ))

    saved_files: List[Path] = []
    for key in format_keys:
        renderer = RENDERERS[key]()
        _status("  Running {} renderer...".format(renderer.name))
        for output in renderer.render(document):
            saved_path = _save_output(output, stem, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    return saved_files


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Positional: input_file (required, "-" for stdin)
    - Optional: --formats (comma-separated), --output-dir, --base-dir
    - Optional: --image-width, --bibliography-title, --open, -v/--verbose
    """
    parser = argparse.ArgumentParser(
        prog="docx_export",
        description="Export a Markdown note (chapters, sections, lists, code, "
                    "images, links) to a formatted Word document.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the Markdown file to export, or '-' to read stdin.",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: {}.".format(
                 ", ".join(sorted(RENDERERS.keys())), ", ".join(DEFAULT_RENDERERS)
             ),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "--base-dir",
        default=None,
        help="Directory embedded image paths are relative to (default: input file's directory).",
    )

    parser.add_argument(
        "--image-width",
        type=int,
        default=IMAGE_TARGET_WIDTH,
        help="Display width of embedded images in pixels (default: %(default)s).",
    )

    parser.add_argument(
        "--bibliography-title",
        default=BIBLIOGRAPHY_TITLE,
        help="Heading of the reference list (default: %(default)s).",
    )

    parser.add_argument(
        "--open",
        action="store_true",
        help="Open the exported file with the default application.",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        saved = asyncio.run(_run_pipeline(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except OSError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    if args.open and saved:
        _open_with_default_app(saved[0])


if __name__ == "__main__":
    main()
