"""CLI entry point for multiblob."""

from __future__ import annotations

import argparse
import sys

import yaml

from multiblob.config import load_settings
from multiblob.driver import Driver
from multiblob.errors import MultiblobError
from multiblob.logging_config import configure_logging


def cmd_size(driver: Driver, args: argparse.Namespace) -> None:
    print(driver.size(args.uri))


def cmd_exists(driver: Driver, args: argparse.Namespace) -> None:
    found = driver.exists(args.uri)
    print("yes" if found else "no")
    if not found:
        sys.exit(1)


def cmd_cat(driver: Driver, args: argparse.Namespace) -> None:
    with driver.open_file(args.uri) as vf:
        end = len(vf) if args.length is None else args.start + args.length
        sys.stdout.buffer.write(vf[args.start : end])


def cmd_info(driver: Driver, args: argparse.Namespace) -> None:
    with driver.open_file(args.uri) as vf:
        index = vf.reader.index
        print(f"Pattern:     {vf.reader.pattern}")
        print(f"Total bytes: {index.total_length:,}")
        print(f"Num shards:  {index.num_shards}")
        if index.header.applies:
            print(f"Header:      {index.header.header_length:,} bytes, deduplicated")
        else:
            print("Header:      not deduplicated")
        for shard, end in zip(index.shards, index.cumulative):
            print(f"  {shard.name}  {shard.physical_size:,} bytes  (ends at {end:,})")


def cmd_get(driver: Driver, args: argparse.Namespace) -> None:
    written = driver.copy_to_local(args.uri, args.dest)
    print(f"Downloaded {written:,} bytes to {args.dest}")


def cmd_put(driver: Driver, args: argparse.Namespace) -> None:
    sent = driver.copy_from_local(args.src, args.uri)
    print(f"Uploaded {sent:,} bytes to {args.uri}")


def cmd_rm(driver: Driver, args: argparse.Namespace) -> None:
    driver.remove(args.uri)


COMMANDS = {
    "size": cmd_size,
    "exists": cmd_exists,
    "cat": cmd_cat,
    "info": cmd_info,
    "get": cmd_get,
    "put": cmd_put,
    "rm": cmd_rm,
}


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="multiblob",
        description="Read and write blob shard families as single files.",
    )
    parser.add_argument("--config", "-c", help="Path to a YAML settings file")
    parser.add_argument("--log-level", help="Log level (default: MULTIBLOB_LOGLEVEL or INFO)")
    sub = parser.add_subparsers(dest="command")

    p_size = sub.add_parser("size", help="Print the logical size of a file or pattern")
    p_size.add_argument("uri")

    p_exists = sub.add_parser("exists", help="Check that a file, pattern or directory exists")
    p_exists.add_argument("uri")

    p_cat = sub.add_parser("cat", help="Write a byte range of a virtual file to stdout")
    p_cat.add_argument("uri")
    p_cat.add_argument("--start", type=int, default=0, help="Start offset (default: 0)")
    p_cat.add_argument("--length", type=int, default=None, help="Number of bytes (default: to the end)")

    p_info = sub.add_parser("info", help="Show the shards and header of a virtual file")
    p_info.add_argument("uri")

    p_get = sub.add_parser("get", help="Download a virtual file to a local path")
    p_get.add_argument("uri")
    p_get.add_argument("dest")

    p_put = sub.add_parser("put", help="Upload a local file to a new object")
    p_put.add_argument("src")
    p_put.add_argument("uri")

    p_rm = sub.add_parser("rm", help="Delete an object")
    p_rm.add_argument("uri")

    args = parser.parse_args(argv)
    if args.command not in COMMANDS:
        parser.print_help()
        sys.exit(1)

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"error: invalid configuration: {exc}", file=sys.stderr)
        sys.exit(2)
    configure_logging(args.log_level or settings.log_level)

    driver = Driver(settings)
    try:
        driver.connect()
        COMMANDS[args.command](driver, args)
    except (MultiblobError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(2)
    finally:
        driver.disconnect()


if __name__ == "__main__":
    main()
