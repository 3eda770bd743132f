#!/usr/bin/env python3
"""
Interactive CLI for the ApptScan pipeline

A REPL for trying the appointment pipeline by hand. Type a scheduling
note, or ``image:<path>`` to run OCR on a photo.

Usage:
    python -m apptscan.cli.interactive [--verbose] [--timezone Asia/Kolkata]
"""
import asyncio
import json
import sys
from typing import Any, Dict

from ..config import config
from ..data_types import RawInput, to_response
from ..engines import DateparserEngine, get_ocr_engine
from ..errors import RecognitionError
from ..pipeline import AppointmentPipeline

IMAGE_PREFIX = "image:"


def print_banner():
    """Print welcome banner."""
    print("\n" + "=" * 60)
    print("📅 ApptScan - Interactive Mode")
    print("=" * 60)
    print("\nCommands:")
    print("  - Type a scheduling note to process")
    print(f"  - Type '{IMAGE_PREFIX}<path>' to scan a photo")
    print("  - Type 'quit' or 'exit' to quit")
    print("\nExamples:")
    print("  - 'Book dentist next Friday at 3pm'")
    print("  - 'cardiology appointment tomorrow 10:30 am'")
    print("  - 'image:samples/note.png'")
    print("=" * 60)


def parse_command(line: str) -> RawInput:
    """Turn a REPL line into pipeline input."""
    if line.lower().startswith(IMAGE_PREFIX):
        return RawInput(image_path=line[len(IMAGE_PREFIX):].strip())
    return RawInput(text=line)


def print_pipeline_result(response: Dict[str, Any], trace: Dict[str, Any], verbose: bool = False):
    """
    Print the final response, and each stage's output when verbose.
    """
    if verbose:
        stages = trace.get("stages", {})
        timings = trace.get("timings", {})
        for stage, output in stages.items():
            duration = timings.get(stage)
            suffix = f" ({duration} ms)" if duration is not None else ""
            print(f"\n🔹 {stage}{suffix}")
            print(json.dumps(output, indent=2, ensure_ascii=False, default=str))

    icon = {"ok": "✅", "needs_clarification": "❓"}.get(response["status"], "❌")
    print(f"\n{icon} Result:")
    print(json.dumps(response, indent=2, ensure_ascii=False, default=str))


def interactive_main(timezone: str, verbose: bool = False):
    """Run the REPL until the user quits."""
    ocr_engine = get_ocr_engine()
    try:
        ocr_engine.warmup()
    except RecognitionError as e:
        print(f"⚠️  {e}; image input is unavailable")

    pipeline = AppointmentPipeline(
        parser=DateparserEngine(),
        ocr_engine=ocr_engine,
        timezone=timezone,
    )

    print_banner()
    if not verbose:
        print("\n💡 Tip: Use --verbose flag to see detailed stage-by-stage output")

    while True:
        try:
            line = input("\n💬 Enter scheduling note: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\n👋 Goodbye!")
            break

        if not line or line.lower() in ['quit', 'exit', 'q']:
            print("\n👋 Goodbye!")
            break

        try:
            raw_input = parse_command(line)
        except ValueError as e:
            print(f"❌ {e}")
            continue

        trace: Dict[str, Any] = {}
        result = asyncio.run(pipeline.run(raw_input, trace=trace))
        print_pipeline_result(to_response(result), trace, verbose=verbose)


def main():
    """Entry point for the interactive CLI."""
    import argparse

    parser = argparse.ArgumentParser(description="ApptScan - Interactive Mode")
    parser.add_argument(
        '--timezone',
        default=config.TARGET_TIMEZONE,
        help=f'Target timezone (default: {config.TARGET_TIMEZONE})'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Show stage-by-stage output (default: show only final result)'
    )
    args = parser.parse_args()

    try:
        interactive_main(timezone=args.timezone, verbose=args.verbose)
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!")
        sys.exit(0)


if __name__ == "__main__":
    main()
