"""CLI entry point for cloudobject."""

import argparse
import logging
import sys
from pathlib import Path

from cloudobject.config import CloudObjectConfig, load_config
from cloudobject.connection import Connection
from cloudobject.container import Container
from cloudobject.errors import CloudObjectError
from cloudobject.logging_config import configure_logging
from cloudobject.storage_object import cdn_object_url

logger = logging.getLogger("cloudobject")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="cloudobject",
        description="cloudobject - inspect, read and write objects in a remote object store",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("cloudobject.yaml"),
        help="Path to YAML configuration file (default: cloudobject.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    head = commands.add_parser("head", help="Show an object's attributes and metadata")
    head.add_argument("container")
    head.add_argument("object")

    get = commands.add_parser("get", help="Download an object")
    get.add_argument("container")
    get.add_argument("object")
    get.add_argument(
        "--output", "-o", type=Path, default=None, help="Write to a file instead of stdout"
    )

    put = commands.add_parser("put", help="Upload a local file as an object")
    put.add_argument("container")
    put.add_argument("object")
    put.add_argument("path", type=Path)
    put.add_argument("--content-type", default=None, help="Content-Type to store")
    put.add_argument("--etag", default=None, help="MD5 of the file, verified by the service")

    set_meta = commands.add_parser("set-meta", help="Replace an object's metadata")
    set_meta.add_argument("container")
    set_meta.add_argument("object")
    set_meta.add_argument("pairs", nargs="+", metavar="KEY=VALUE")

    url = commands.add_parser("url", help="Print an object's public CDN URL (no request is sent)")
    url.add_argument("container")
    url.add_argument("object")
    url.add_argument("--cdn-uri", required=True, help="CDN base URL of the container")

    return parser.parse_args(argv)


def _parse_pairs(pairs: list[str]) -> dict[str, str]:
    metadata: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        metadata[key] = value
    return metadata


def run_command(args: argparse.Namespace, container: Container) -> int:
    """Run one subcommand against ``container``.

    Returns:
        The process exit status.
    """
    if args.command == "head":
        obj = container.object(args.object)
        print(f"Object:         {obj.container_name}/{obj.name}")
        print(f"Content-Type:   {obj.content_type}")
        print(f"Content-Length: {obj.bytes}")
        print(f"ETag:           {obj.etag}")
        print(f"Last-Modified:  {obj.last_modified}")
        for key, value in sorted(obj.metadata.items()):
            print(f"Meta {key}: {value}")
    elif args.command == "get":
        obj = container.create_object(args.object)
        if args.output is not None:
            written = obj.save_to_path(args.output)
            logger.info("Saved %d bytes to %s", written, args.output)
        else:
            obj.data_stream(sys.stdout.buffer.write)
            sys.stdout.buffer.flush()
    elif args.command == "put":
        obj = container.create_object(args.object)
        headers = {}
        if args.content_type:
            headers["Content-Type"] = args.content_type
        if args.etag:
            headers["ETag"] = args.etag
        with open(args.path, "rb") as fh:
            obj.write(fh, headers)
        logger.info("Uploaded %s as %s/%s (etag %s)", args.path, container.name, obj.name, obj.etag)
    elif args.command == "set-meta":
        obj = container.create_object(args.object)
        obj.set_metadata(_parse_pairs(args.pairs))
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the cloudobject CLI.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    # Use a basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        logger.error("Config file not found: %s", args.config)
        sys.exit(1)
    except Exception as exc:
        logger.error("Failed to load config: %s", exc)
        sys.exit(1)

    # Apply CLI overrides
    if args.log_level is not None:
        config.logging.level = args.log_level
    if args.log_format is not None:
        config.logging.format = args.log_format

    configure_logging(level=config.logging.level, fmt=config.logging.format)
    sys.exit(run(args, config))


def run(args: argparse.Namespace, config: CloudObjectConfig, transport=None) -> int:
    """Open a connection from ``config`` and run the parsed command."""
    if config.observability.metrics:
        import cloudobject.metrics as _metrics

        _metrics.init_metrics()

    # The CDN URL is built locally; storage_url may be unset for it.
    if args.command == "url":
        print(cdn_object_url(args.cdn_uri.rstrip("/"), args.object))
        return 0

    with Connection.from_config(config.connection, transport=transport) as connection:
        container = Container(connection, args.container)
        try:
            return run_command(args, container)
        except (CloudObjectError, OSError, ValueError) as exc:
            logger.error("%s failed: %s", args.command, exc)
            return 1


if __name__ == "__main__":
    main()
