#!/usr/bin/env python3
"""
Command-line interface for the shortlink registry.

Usage:
    shortlink shorten <url> [--validity MINUTES] [--custom-code CODE]
    shortlink batch <requests.json>
    shortlink get <short_code>
    shortlink stats <short_code>
    shortlink list
    shortlink delete <record_id>
    shortlink sweep
    shortlink summary
    shortlink health
"""

import argparse
import asyncio
import json
import os
import sys
from dataclasses import asdict
from typing import Optional

from .common.logging_config import setup_logging
from .errors import RegistryError
from .models import CreateUrlRequest, UrlRecord
from .service import RegistryService
from .shortcode import ShortCodeGenerator
from .storage import BACKENDS, RecordStore, create_backend


def _record_json(record: UrlRecord, short_url: str) -> dict:
    data = record.to_dict()
    data["short_url"] = short_url
    data["click_count"] = len(record.clicks)
    del data["clicks"]
    return data


class RegistryCLI:
    """Command-line interface for the shortlink registry."""

    def __init__(
        self,
        backend: str = "file",
        storage_path: str = "./data",
        redis_url: Optional[str] = None,
        base_url: str = "http://localhost:3000",
        verbose: bool = False,
        service: Optional[RegistryService] = None,
    ):
        """Initialize CLI."""
        self.backend = backend
        self.storage_path = storage_path
        self.redis_url = redis_url
        self.base_url = base_url
        self.logger = setup_logging(
            level="DEBUG" if verbose else "WARNING",
            stream=sys.stderr,
        )
        self.service = service

    async def initialize(self):
        """Initialize storage and service."""
        if self.service is not None:
            return

        self.logger.info("Initializing shortlink registry...")
        backend = create_backend(
            self.backend,
            storage_path=self.storage_path,
            redis_url=self.redis_url,
            logger=self.logger.getChild("storage"),
        )
        self.service = RegistryService(
            store=RecordStore(backend, logger=self.logger.getChild("store")),
            short_code_generator=ShortCodeGenerator(default_length=6),
            base_url=self.base_url,
            logger=self.logger.getChild("service"),
        )
        self.logger.info("Initialization complete")

    async def cleanup(self):
        """Cleanup resources."""
        if self.service:
            await self.service.close()

    def _ok(self, payload: dict) -> int:
        print(json.dumps({"success": True, **payload}, indent=2, default=str))
        return 0

    def _fail(self, error: str, **extra) -> int:
        print(json.dumps({"success": False, "error": error, **extra}, indent=2), file=sys.stderr)
        return 1

    async def shorten(
        self,
        url: str,
        validity_minutes: Optional[int] = None,
        custom_code: Optional[str] = None,
    ) -> int:
        """Shorten a URL."""
        request = CreateUrlRequest(
            original_url=url,
            validity_minutes=validity_minutes,
            custom_short_code=custom_code,
        )
        try:
            result = await self.service.create(request)
        except RegistryError as e:
            return self._fail(e.code, message=e.message)

        if not result.success:
            return self._fail(result.error.code, message=result.error.message)

        record = result.record
        return self._ok({
            **_record_json(record, self.service.build_public_url(record.short_code)),
            "message": f"Successfully shortened URL to: {record.short_code}",
        })

    async def batch(self, path: str) -> int:
        """Shorten every request in a JSON file (a list of request objects)."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                items = json.load(f)
        except (OSError, ValueError) as e:
            return self._fail(f"Cannot read batch file: {e}")

        if not isinstance(items, list):
            return self._fail("Batch file must contain a JSON list")

        requests = [
            CreateUrlRequest(
                original_url=item.get("original_url", ""),
                validity_minutes=item.get("validity_minutes"),
                custom_short_code=item.get("custom_short_code"),
            )
            for item in items
        ]
        result = await self.service.create_batch(requests)

        print(json.dumps({
            "success": not result.failed,
            "successful": [
                _record_json(record, self.service.build_public_url(record.short_code))
                for record in result.successful
            ],
            "failed": [
                {"request": failure.request.to_dict(), "error": failure.error.code, "message": failure.error.message}
                for failure in result.failed
            ],
        }, indent=2, default=str))
        return 0 if not result.failed else 1

    async def get(self, short_code: str) -> int:
        """Get the original URL for a live short code without recording a click."""
        record = await self.service.lookup(short_code)
        if record is None:
            return self._fail(f"Short code '{short_code}' not found or has expired")

        return self._ok({"short_code": short_code, "original_url": record.original_url})

    async def stats(self, short_code: str) -> int:
        """Get click analytics for a short code."""
        analytics = await self.service.analytics(short_code)
        if analytics is None:
            return self._fail(f"Short code '{short_code}' not found")

        data = asdict(analytics)
        data["recent_clicks"] = [click.to_dict() for click in analytics.recent_clicks]
        return self._ok(data)

    async def list_urls(self) -> int:
        """List stored URLs, newest first."""
        records = await self.service.list_urls()
        return self._ok({
            "count": len(records),
            "urls": [
                _record_json(record, self.service.build_public_url(record.short_code))
                for record in records
            ],
        })

    async def delete(self, record_id: str) -> int:
        if not await self.service.delete(record_id):
            return self._fail(f"Record '{record_id}' not found")
        return self._ok({"deleted": record_id})

    async def sweep(self) -> int:
        removed = await self.service.sweep_expired()
        return self._ok({"removed": removed})

    async def summary(self) -> int:
        summary = await self.service.summary()
        return self._ok(asdict(summary))

    async def health(self) -> int:
        """Check service health."""
        health_status = await self.service.health_check()
        print(json.dumps({"success": health_status["overall"], "health": health_status}, indent=2))
        return 0 if health_status["overall"] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shortlink",
        description="Shortlink registry CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten a URL for two hours
  %(prog)s shorten https://example.com/long/url --validity 120

  # Shorten with custom code
  %(prog)s shorten https://example.com/long/url --custom-code mylink

  # Get original URL / click analytics
  %(prog)s get mylink
  %(prog)s stats mylink

  # Remove expired URLs
  %(prog)s sweep
        """
    )

    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=os.getenv("STORAGE_BACKEND", "file"),
        help="Storage backend (default: from STORAGE_BACKEND env or file)"
    )
    parser.add_argument(
        "--storage-path",
        default=os.getenv("STORAGE_PATH", "./data"),
        help="Directory for the file backend (default: from STORAGE_PATH env or ./data)"
    )
    parser.add_argument(
        "--redis-url",
        default=os.getenv("REDIS_URL"),
        help="Redis connection URL for the redis backend (default: from REDIS_URL env)"
    )
    parser.add_argument(
        "--base-url",
        default=os.getenv("BASE_URL", "http://localhost:3000"),
        help="Base URL for printed short links"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--validity", type=int, help="Validity in minutes (default 30)")
    shorten_parser.add_argument("--custom-code", help="Custom short code")

    batch_parser = subparsers.add_parser("batch", help="Shorten URLs listed in a JSON file")
    batch_parser.add_argument("path", help="JSON file with a list of requests")

    get_parser = subparsers.add_parser("get", help="Get original URL")
    get_parser.add_argument("short_code", help="Short code to lookup")

    stats_parser = subparsers.add_parser("stats", help="Get click analytics")
    stats_parser.add_argument("short_code", help="Short code to get stats for")

    subparsers.add_parser("list", help="List stored URLs")

    delete_parser = subparsers.add_parser("delete", help="Delete a URL by record id")
    delete_parser.add_argument("record_id", help="Record id to delete")

    subparsers.add_parser("sweep", help="Remove expired URLs")
    subparsers.add_parser("summary", help="Collection-wide statistics")
    subparsers.add_parser("health", help="Check storage health")

    return parser


async def run(args: argparse.Namespace, cli: RegistryCLI) -> int:
    """Execute one parsed command."""
    try:
        await cli.initialize()

        if args.command == "shorten":
            return await cli.shorten(args.url, args.validity, args.custom_code)
        elif args.command == "batch":
            return await cli.batch(args.path)
        elif args.command == "get":
            return await cli.get(args.short_code)
        elif args.command == "stats":
            return await cli.stats(args.short_code)
        elif args.command == "list":
            return await cli.list_urls()
        elif args.command == "delete":
            return await cli.delete(args.record_id)
        elif args.command == "sweep":
            return await cli.sweep()
        elif args.command == "summary":
            return await cli.summary()
        elif args.command == "health":
            return await cli.health()
        return 1
    except RegistryError as e:
        return cli._fail(e.code, message=e.message)
    finally:
        await cli.cleanup()


def main(argv=None) -> int:
    """Console script entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cli = RegistryCLI(
        backend=args.backend,
        storage_path=args.storage_path,
        redis_url=args.redis_url,
        base_url=args.base_url,
        verbose=args.verbose,
    )
    return asyncio.run(run(args, cli))


if __name__ == "__main__":
    sys.exit(main())
