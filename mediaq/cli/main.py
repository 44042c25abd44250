"""
MediaQ CLI - setup, worker, upload and status commands
"""

import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path

from ..errors import MediaQError
from ..features.logging import setup_logging

_STATUS_PREFIX = {
    "info": "\033[94m[info]\033[0m",
    "success": "\033[92m[ok]\033[0m",
    "error": "\033[91m[error]\033[0m",
}


def print_status(message: str, status: str = "info") -> None:
    prefix = _STATUS_PREFIX.get(status, "")
    stream = sys.stderr if status == "error" else sys.stdout
    print(f"{prefix} {message}", file=stream)


def _make_app(args):
    from ..client import MediaQ

    overrides = {}
    if getattr(args, "database_url", None):
        overrides["database_url"] = args.database_url
    config_file = Path(args.config) if getattr(args, "config", None) else None
    return MediaQ(config_file=config_file, **overrides)


async def handle_setup(args) -> int:
    app = _make_app(args)
    try:
        await app.setup()
    finally:
        await app.close()
    print_status("Media table, bucket and queue are ready", "success")
    return 0


async def handle_worker(args) -> int:
    app = _make_app(args)
    setup_logging(app.settings.log_level, app.settings.log_format)
    try:
        await app.run_worker(concurrency=args.concurrency)
    finally:
        await app.close()
    return 0


async def handle_upload(args) -> int:
    path = Path(args.file)
    if not path.is_file():
        print_status(f"File not found: {path}", "error")
        return 1

    content = path.read_bytes()
    mime_type = args.mime_type or mimetypes.guess_type(path.name)[0]
    if not mime_type:
        print_status("Could not guess MIME type; pass --mime-type", "error")
        return 1

    app = _make_app(args)
    try:
        record = await app.upload_media(
            content,
            path.name,
            uploader_id=args.uploader_id,
            name=args.name or path.stem,
            description=args.description,
            mime_type=mime_type,
            size=len(content),
            width=args.width,
            height=args.height,
        )
    finally:
        await app.close()

    print_status(f"Uploaded media {record.id} ({record.status.value})", "success")
    return 0


async def handle_status(args) -> int:
    app = _make_app(args)
    try:
        media = await app.get_media(args.media_id)
    finally:
        await app.close()
    print(json.dumps(media, indent=2, default=str))
    return 0


async def handle_list(args) -> int:
    app = _make_app(args)
    try:
        media = await app.list_media(
            page=args.page,
            size=args.size,
            sort=args.sort,
            mime_type=args.mime_type,
            search=args.search,
        )
    finally:
        await app.close()
    print(json.dumps(media, indent=2, default=str))
    return 0


def handle_api(args) -> int:
    from ..api.fastapi_app import FASTAPI_AVAILABLE, run_api

    if not FASTAPI_AVAILABLE:
        print_status("FastAPI is not installed. Install with: pip install 'mediaq[api]'", "error")
        return 1

    app = _make_app(args)
    setup_logging(app.settings.log_level, app.settings.log_format)
    run_api(app, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediaq",
        description="MediaQ CLI - media upload and thumbnail worker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mediaq setup
  mediaq worker --concurrency 2
  mediaq upload ./cat.jpg --uploader-id 1
  mediaq status 42
  mediaq list --mime-type image/png --search beach
        """,
    )
    parser.add_argument("--database-url", metavar="URL", help="Overrides MEDIAQ_DATABASE_URL")
    parser.add_argument("--config", metavar="FILE", help="Env-style configuration file")

    subparsers = parser.add_subparsers(dest="command", title="Available commands")

    setup_parser = subparsers.add_parser("setup", help="Create table, bucket and queues")
    setup_parser.set_defaults(func=handle_setup)

    worker_parser = subparsers.add_parser("worker", help="Run the queue worker")
    worker_parser.add_argument(
        "--concurrency", type=int, default=None, help="Number of poller loops"
    )
    worker_parser.set_defaults(func=handle_worker)

    upload_parser = subparsers.add_parser("upload", help="Upload a file and enqueue its job")
    upload_parser.add_argument("file")
    upload_parser.add_argument("--uploader-id", type=int, required=True)
    upload_parser.add_argument("--name")
    upload_parser.add_argument("--description")
    upload_parser.add_argument("--mime-type")
    upload_parser.add_argument("--width", type=int)
    upload_parser.add_argument("--height", type=int)
    upload_parser.set_defaults(func=handle_upload)

    status_parser = subparsers.add_parser("status", help="Show a media record")
    status_parser.add_argument("media_id", type=int)
    status_parser.set_defaults(func=handle_status)

    list_parser = subparsers.add_parser("list", help="List media records")
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--size", type=int, default=10, help="Records per page (max 100)")
    list_parser.add_argument(
        "--sort", choices=["createdAt_desc", "createdAt_asc"], default="createdAt_desc"
    )
    list_parser.add_argument("--mime-type")
    list_parser.add_argument("--search", help="Match name or description")
    list_parser.set_defaults(func=handle_list)

    api_parser = subparsers.add_parser("api", help="Serve the upload API (requires mediaq[api])")
    api_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    api_parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    api_parser.set_defaults(func=handle_api)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if asyncio.iscoroutinefunction(args.func):
            return asyncio.run(args.func(args))
        return args.func(args)
    except KeyboardInterrupt:
        print_status("Operation interrupted by user", "info")
        return 0
    except MediaQError as e:
        print_status(f"Command failed: {e}", "error")
        return 1
    except ValueError as e:
        print_status(f"Command failed: {e}", "error")
        return 1


if __name__ == "__main__":
    sys.exit(main())
