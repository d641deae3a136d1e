"""Command-line entry point for processing a remote asset locally."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import httpx

from firesize.core import ProcessorConfig
from firesize.core.args import ProcessArgs
from firesize.core.errors import FiresizeError, InvalidArgumentsError
from firesize.core.events import EventLog
from firesize.core.processor import Processor
from firesize.core.proxy import iter_body
from firesize.utils import file_tools


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="firesize",
        description="Fetch a remote image or video, transform it and write the result.",
    )
    parser.add_argument("url", help="Source asset url (http or https)")
    parser.add_argument("output", type=Path, help="Destination file for the result")
    parser.add_argument("--size", help="Resize geometry, e.g. 500x300, 500x or 500x300^")
    parser.add_argument("--gravity", help="Crop anchor when resizing to an exact box, e.g. center")
    parser.add_argument("--frame", help="Only use this frame of a multi-frame source")
    parser.add_argument("--quality", help="Output quality (1-100)")
    parser.add_argument("--format", help="Output format: png, jpg, gif, webp or mp4")
    parser.add_argument(
        "--keep-workspace",
        action="store_true",
        help="Leave intermediate files in the temporary workspace for inspection",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the convert command that would run without fetching anything",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")

    try:
        process_args = ProcessArgs.from_options(
            args.url,
            size=args.size,
            gravity=args.gravity,
            frame=args.frame,
            quality=args.quality,
            format=args.format,
        )
    except InvalidArgumentsError as exc:
        parser.error(str(exc))

    config = ProcessorConfig.from_env()
    if args.keep_workspace:
        config = replace(config, keep_workspace=True)

    if args.dry_run:
        if not process_args.has_operations():
            print(f"proxy {process_args.url}")
            return 0
        cmd_args, out_file = process_args.command_args(Path("in"), Path("out"))
        print(" ".join([*config.convert_command, *cmd_args]))
        return 0

    with _make_client() as client:
        processor = Processor(client, config, EventLog())
        try:
            outcome = processor.process(process_args)
        except FiresizeError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        try:
            if outcome.is_proxy:
                file_tools.ensure_directory(args.output.parent)
                with args.output.open("wb") as handle:
                    for chunk in iter_body(outcome.upstream):
                        handle.write(chunk)
            else:
                file_tools.copy_output(outcome.path, args.output)
        except (FiresizeError, OSError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        finally:
            outcome.close()
    return 0


def _make_client() -> httpx.Client:
    return httpx.Client(follow_redirects=True)


if __name__ == "__main__":
    sys.exit(main())
