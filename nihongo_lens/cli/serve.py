import argparse
from typing import Optional, Sequence

import uvicorn

from nihongo_lens.settings import get_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the nihongo-lens API server")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change",
    )
    serve_parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="Uvicorn log level",
    )

    subparsers.add_parser("check", help="Print the effective configuration")
    return parser


def describe_settings() -> str:
    settings = get_settings()
    lines = [
        f"API URL:          {settings.api_url}",
        f"Model:            {settings.model_name}",
        f"API key:          {'configured' if settings.api_key else 'missing'}",
        f"Password gate:    {'enabled' if settings.code else 'disabled'}",
        f"TTS URL:          {settings.tts_url}",
        f"Upstream timeout: {settings.upstream_timeout}s",
    ]
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        uvicorn.run(
            "nihongo_lens.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=args.log_level,
        )
    elif args.command == "check":
        print(describe_settings())


if __name__ == "__main__":
    main()
