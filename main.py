#!/usr/bin/env python3
"""
Egg Pool — launch the API server.

Usage:
    python main.py                          # http://127.0.0.1:8000
    python main.py --port 9000              # http://127.0.0.1:9000
    python main.py --host 0.0.0.0           # listen on every interface
    python main.py --reload                 # auto-reload on code changes
    python main.py --log-format json        # one JSON object per log line
"""

from __future__ import annotations

import argparse
import os

import uvicorn

from utils.config import AppConfig, StoreConfig


def build_parser(app_config: AppConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Launch the Egg Pool API server.")
    parser.add_argument(
        "--host", default=app_config.api_host,
        help=f"Bind address (default: {app_config.api_host}, from APP_HOST)",
    )
    parser.add_argument(
        "--port", type=int, default=app_config.api_port,
        help=f"Port to listen on (default: {app_config.api_port}, from APP_PORT)",
    )
    parser.add_argument(
        "--log-format", choices=["text", "json"], default=app_config.log_format,
        help="Log output format (default: APP_LOG_FORMAT or text)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    return parser


def main() -> None:
    args = build_parser(AppConfig.from_env()).parse_args()
    # create_app reads its settings from the environment in the server process
    os.environ["APP_LOG_FORMAT"] = args.log_format

    store_config = StoreConfig.from_env()
    if store_config.is_configured():
        print(f"Egg document: {store_config.owner}/{store_config.repo}"
              f"@{store_config.branch}:{store_config.document_path}")
    else:
        print("Warning: no egg document repository configured.")
        print("  Set EGGPOOL_GITHUB_OWNER, EGGPOOL_GITHUB_REPO and EGGPOOL_GITHUB_TOKEN")
        print("  to enable the gallery and submissions.")
    print(f"Serving Egg Pool API at http://{args.host}:{args.port} (docs at /docs)")

    uvicorn.run(
        "api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
