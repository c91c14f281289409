#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from dotenv import load_dotenv

from .errors import ConfigError
from .pipeline import run_pipeline

logger = logging.getLogger("autoblogger.cli")


def _print_line(message: str) -> None:
    print(message, flush=True)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate and publish one blog post to WordPress.")
    parser.add_argument("--domain", default=None, help="Subject domain to write about (default: random).")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Generate text and render the image, but skip upload, publication and history.",
    )
    parser.add_argument("--env-file", default=None, help="Load environment variables from this file.")
    parser.add_argument("--verbose", action="store_true", help="Log debug output.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    try:
        result = run_pipeline(
            log=_print_line,
            domain=args.domain,
            dry_run=True if args.dry_run else None,
        )
    except ConfigError as exc:
        logger.error("autoblogger.cli.config_error error=%s", str(exc))
        _print_line(f"Configuration error: {exc}")
        return 2

    if not result.ok:
        return 1
    if result.post_url:
        _print_line(result.post_url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
