"""
Command-line interface for wechat-mirror.

    wechat-mirror serve [--host 0.0.0.0] [--port 3001]
    wechat-mirror convert https://mp.weixin.qq.com/s/... [--output out.json]
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from wechat_mirror.app import build_services, create_app
from wechat_mirror.config import Settings
from wechat_mirror.errors import MirrorError
from wechat_mirror.logging_setup import log, setup_logging
from wechat_mirror.network.client import build_client


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mirror the media of WeChat articles to local storage.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "APP_ID, APP_SECRET, DOMAIN, PORT and IMAGE_DIR are read from the\n"
            "environment or from a .env file in the working directory."
        ),
    )
    parser.add_argument("--debug", action="store_true", help="Enable verbose debug logging")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--domain", default=None, help="Public domain for mirrored files")
    parser.add_argument("--image-dir", default=None, help="Directory mirrored files are written to")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: $PORT or 3001)")

    convert = sub.add_parser("convert", help="Convert one article URL and print the JSON result")
    convert.add_argument("url", help="Article URL")
    convert.add_argument("--output", default=None, help="Write the JSON result here instead of stdout")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.domain:
        settings.domain = args.domain.rstrip("/")
    if args.image_dir:
        settings.image_dir = Path(args.image_dir)
    if getattr(args, "port", None):
        settings.port = args.port
    return settings


async def convert_once(settings: Settings, url: str) -> dict:
    async with build_client(settings.request_timeout) as client:
        services = build_services(settings, client)
        return await services.orchestrator.convert(url)


def main(argv=None) -> None:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(debug=args.debug, log_file=args.log_file)
    settings = load_settings(args)

    if args.command == "serve":
        uvicorn.run(create_app(settings), host=args.host, port=settings.port)
        return

    try:
        result = asyncio.run(convert_once(settings, args.url))
    except MirrorError as exc:
        log.error("Conversion failed: %s", exc.message)
        sys.exit(1)

    text = json.dumps(result, ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        log.info("Saved result to %s", args.output)
    else:
        print(text)


if __name__ == "__main__":
    main()
