#!/usr/bin/env python3
"""
Command-line interface for pdfsheet.

Usage:
    pdfsheet convert statement.pdf
    pdfsheet convert statement.pdf -o tables/statement.xlsx
    pdfsheet serve --port 8096
    pdfsheet config

Available commands:
    convert     - Convert a PDF to an Excel workbook locally
    serve       - Start the API server
    config      - Show current configuration
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path


def cmd_convert(args):
    """Convert a PDF to an Excel workbook without the server."""
    from pdfsheet.config import config
    from pdfsheet.core.text import output_filename
    from pdfsheet.extraction import (
        InvalidPdfError,
        NoTableFoundError,
        convert_pdf,
        create_extractor,
    )

    if not args.pdf_path.exists():
        print(f"Error: File not found: {args.pdf_path}", file=sys.stderr)
        return 1

    output_path = args.output or args.pdf_path.with_name(output_filename(args.pdf_path.name))

    def on_progress(progress: int, message: str) -> None:
        print(f"  [{progress:3d}%] {message}")

    print(f"Document: {args.pdf_path.name}")
    print(f"Model: {config.vision_llm_model} @ {config.vision_llm_url}")
    print("=" * 50)

    try:
        result = asyncio.run(
            convert_pdf(
                args.pdf_path.read_bytes(),
                create_extractor(config),
                on_progress=on_progress,
                scale=args.scale,
            )
        )
    except InvalidPdfError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except NoTableFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.workbook)

    print("=" * 50)
    print(f"Done! Saved to: {output_path}")
    print(f"Rows: {result.row_count}  Pages: {result.page_count}")
    return 0


def cmd_serve(args):
    """Start the API server."""
    import uvicorn

    from pdfsheet.config import config

    print("Starting pdfsheet API server...")
    print(f"Config source: {config.config_source}")
    print(f"Vision LLM: {config.vision_llm_model} @ {config.vision_llm_url}")
    print()

    uvicorn.run(
        "pdfsheet.servers.api:app",
        host=args.host or config.host,
        port=args.port or config.port,
        reload=args.reload,
        log_level="info",
    )
    return 0


def cmd_config(args):
    """Show current configuration."""
    from pdfsheet.config import config, describe_config

    print(describe_config(config))
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="pdfsheet",
        description="Extract tables from PDF documents into Excel spreadsheets",
    )
    parser.add_argument("--version", action="version", version="pdfsheet 1.0.0")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show per-page log output")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- convert ---
    p_convert = subparsers.add_parser("convert", help="Convert a PDF to an Excel workbook")
    p_convert.add_argument("pdf_path", type=Path, help="Path to PDF file")
    p_convert.add_argument(
        "-o", "--output", type=Path, default=None, help="Output .xlsx path (default: next to PDF)"
    )
    p_convert.add_argument("--scale", type=float, default=None, help="Page rendering scale")
    p_convert.set_defaults(func=cmd_convert)

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default=None, help="Host to bind to")
    p_serve.add_argument("--port", type=int, default=None, help="Port to bind to")
    p_serve.add_argument("--reload", action="store_true", help="Enable auto-reload")
    p_serve.set_defaults(func=cmd_serve)

    # --- config ---
    p_config = subparsers.add_parser("config", help="Show current configuration")
    p_config.set_defaults(func=cmd_config)

    # Parse args
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
