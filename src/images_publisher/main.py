"""Main module for the images publisher CLI."""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

import pydantic

from .core.factories import LoggerFactory, PublishPipelineFactory
from .core.exceptions import ImagesPublisherError
from .core.logging_config import configure_http_logging
from .core.models import (
    Anchor,
    CropOptions,
    DeleteItem,
    FitOptions,
    OutputFormat,
    OutputSettings,
    PadOptions,
    PublishConfig,
    PublishRequest,
    RepoContext,
    ResizeMode,
    ResizeOptions,
    SideOption,
    SideOptions,
    StretchOptions,
    TargetBox,
    UploadItem,
)

VERSION = "0.1.0"


def _add_repo_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--repo", required=True, help="Repository as owner/repo")
    parser.add_argument("--branch", default="main", help="Branch to commit to (default: main)")
    parser.add_argument("--folder", default="", help="Remote folder, e.g. images/")
    parser.add_argument(
        "--token",
        default=os.getenv("GITHUB_TOKEN", ""),
        help="GitHub token (default: $GITHUB_TOKEN)",
    )
    parser.add_argument(
        "--api-url",
        default=os.getenv("GITHUB_API_URL", "https://api.github.com"),
        help="GitHub API base URL (default: $GITHUB_API_URL or api.github.com)",
    )
    parser.add_argument("--timeout", type=float, default=30.0, help="Request timeout in seconds")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the ``images-publisher`` argument parser.

    Environment defaults are read here rather than at import time so that the
    current environment is always honoured.
    """
    parser = argparse.ArgumentParser(
        prog="images-publisher",
        description="Images Publisher - resize images and commit them to GitHub in one commit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Upload two photos as 800px wide WebP into images/
  images-publisher publish a.jpg b.png --repo octo/site --folder images --width 800

  # Replace one image and delete another in the same commit
  images-publisher publish new.png --repo octo/site --delete images/old.png

  # List files in a remote folder
  images-publisher list --repo octo/site --folder images
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    publish_parser = subparsers.add_parser(
        "publish", help="Resize images and publish them as a single commit"
    )
    publish_parser.add_argument("files", nargs="*", help="Local image files to upload")
    _add_repo_arguments(publish_parser)
    publish_parser.add_argument("--width", type=int, default=None, help="Target width")
    publish_parser.add_argument("--height", type=int, default=None, help="Target height")
    publish_parser.add_argument(
        "--mode",
        default=ResizeMode.FIT.value,
        choices=[m.value for m in ResizeMode],
        help="Resize mode (default: fit)",
    )
    publish_parser.add_argument(
        "--no-upscale",
        action="store_true",
        help="Keep images that are already smaller than the target unchanged",
    )
    publish_parser.add_argument(
        "--side-option",
        default=SideOption.LONGEST.value,
        choices=[s.value for s in SideOption],
        help="Reference side for --mode side (default: longest)",
    )
    publish_parser.add_argument(
        "--background", default="#ffffff", help="Pad background colour (default: #ffffff)"
    )
    publish_parser.add_argument(
        "--position",
        default=Anchor.CENTER.value,
        choices=[a.value for a in Anchor],
        help="Anchor for --mode pad and crop (default: center)",
    )
    publish_parser.add_argument(
        "--format",
        default=OutputFormat.WEBP.value,
        help="Output format: webp, jpg or png (default: webp)",
    )
    publish_parser.add_argument(
        "--quality", type=int, default=80, help="Encoder quality 0-100 (default: 80)"
    )
    publish_parser.add_argument(
        "--delete",
        action="append",
        default=[],
        metavar="PATH",
        help="Remote path to delete in the same commit (repeatable)",
    )
    publish_parser.add_argument("--message", default=None, help="Commit message")
    publish_parser.add_argument(
        "--workers", type=int, default=1, help="Concurrent blob uploads (default: 1)"
    )
    publish_parser.add_argument(
        "--verify-head",
        action="store_true",
        help="Re-check the branch head before updating it",
    )

    list_parser = subparsers.add_parser("list", help="List files in a remote folder")
    _add_repo_arguments(list_parser)

    subparsers.add_parser("version", help="Show version information")

    return parser


def build_resize_options(args: argparse.Namespace) -> ResizeOptions:
    """Mode options for the selected ``--mode``."""
    mode = ResizeMode(args.mode)
    if mode == ResizeMode.STRETCH:
        return StretchOptions(no_upscale=args.no_upscale)
    if mode == ResizeMode.SIDE:
        return SideOptions(no_upscale=args.no_upscale, side=args.side_option)
    if mode == ResizeMode.PAD:
        return PadOptions(
            no_upscale=args.no_upscale,
            background=args.background,
            position=args.position,
        )
    if mode == ResizeMode.CROP:
        return CropOptions(no_upscale=args.no_upscale, position=args.position)
    return FitOptions(no_upscale=args.no_upscale)


def _build_config(args: argparse.Namespace) -> PublishConfig:
    return PublishConfig(
        api_url=args.api_url,
        timeout=args.timeout,
        max_workers=getattr(args, "workers", 1),
        verify_head=getattr(args, "verify_head", False),
        debug=args.debug,
    )


def _context(args: argparse.Namespace) -> RepoContext:
    return RepoContext(
        repository=args.repo,
        branch=args.branch,
        folder=args.folder,
        token=args.token,
    )


def _create_pipeline(config: PublishConfig):
    if config.debug:
        configure_http_logging("DEBUG")
    logger = LoggerFactory.create_logger(
        "images-publisher", level="DEBUG" if config.debug else "WARNING"
    )
    return PublishPipelineFactory.create_pipeline(config=config, logger=logger)


def build_request(args: argparse.Namespace) -> PublishRequest:
    """
    Build a publish request from parsed arguments.

    Raises:
        OSError: If a local file cannot be read
        pydantic.ValidationError: On out-of-range options
    """
    uploads = [
        UploadItem(content=Path(name).read_bytes(), file_name=Path(name).name)
        for name in args.files
    ]
    return PublishRequest(
        context=_context(args),
        uploads=uploads,
        deletions=[DeleteItem(path=path) for path in args.delete],
        target=TargetBox(width=args.width, height=args.height),
        options=build_resize_options(args),
        output=OutputSettings(format=args.format, quality=args.quality),
        message=args.message,
    )


def run_publish(args: argparse.Namespace) -> int:
    """Publish the batch; returns the process exit code."""
    try:
        request = build_request(args)
        config = _build_config(args)
    except (OSError, pydantic.ValidationError) as exc:
        print(f"Invalid arguments: {exc}", file=sys.stderr)
        return 2

    orchestrator = _create_pipeline(config)
    result = orchestrator.publish(request, on_progress=print)
    return 0 if result.success else 1


def run_list(args: argparse.Namespace) -> int:
    """Print ``path<TAB>sha`` for each file in the remote folder."""
    config = _build_config(args)
    orchestrator = _create_pipeline(config)
    try:
        entries = orchestrator.list_remote_folder(_context(args))
    except ImagesPublisherError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    for entry in entries:
        print(f"{entry.path}\t{entry.sha}")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the command-line interface (CLI) of the Images Publisher.

    Commands:
        publish: resize local images and commit them (plus deletions)
        list: list files in a remote folder, e.g. to pick deletions
        version: print version information
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "publish":
        sys.exit(run_publish(args))

    elif args.command == "list":
        sys.exit(run_list(args))

    elif args.command == "version":
        print("Images Publisher CLI")
        print(f"Version {VERSION}")
        print("Resize images and publish them to GitHub as a single commit")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
