"""CLI entry point for http-builder.

Handles argument parsing and dispatches to request or encode mode.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from http_builder import query_encoder
from http_builder.config_loader import ConfigError, build_executor, load_profile
from http_builder.executor import RequestExecutor, TransportExecutionError
from http_builder.options import Method, Opt
from http_builder.payload import CodecError
from http_builder.query_encoder import EncodingDialect


# Verbs that never carry a body
QUERY_ONLY_METHODS = frozenset({Method.GET, Method.HEAD, Method.OPTIONS})


def positive_float(value: str) -> float:
    """Parse and validate a positive float value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive number.
    """
    try:
        result = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number '{value}'.")
    if result <= 0:
        raise argparse.ArgumentTypeError(f"Value must be positive, got {result}.")
    return result


def parse_header(value: str) -> tuple[str, str]:
    """Parse 'Name: value' format.

    Raises:
        argparse.ArgumentTypeError: If format is invalid.
    """
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(
            f"Invalid header '{value}'. Expected 'Name: value' (e.g., 'Accept: application/json')"
        )
    return (name.strip(), header_value.strip())


def parse_pair(value: str) -> tuple[str, str]:
    """Parse key=value format.

    Raises:
        argparse.ArgumentTypeError: If format is invalid.
    """
    key, sep, pair_value = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(
            f"Invalid pair '{value}'. Expected key=value (e.g., 'page=1')"
        )
    return (key, pair_value)


def pairs_to_data(pairs: list[tuple[str, str]]) -> dict[str, Any]:
    """Collect key=value pairs into a mapping; repeated keys become lists."""
    data: dict[str, Any] = {}
    for key, value in pairs:
        if key not in data:
            data[key] = value
        elif isinstance(data[key], list):
            data[key].append(value)
        else:
            data[key] = [data[key], value]
    return data


@dataclass
class RequestArgs:
    """Parsed arguments for request mode."""

    method: str
    url: str
    profile: Path | None
    headers: list[tuple[str, str]]
    cookies: list[tuple[str, str]]
    data: list[tuple[str, str]]
    json: bool
    query: bool
    no_brackets: bool
    timeout: float | None
    include_status: bool
    verbose: bool


@dataclass
class EncodeArgs:
    """Parsed arguments for encode mode."""

    pairs: list[tuple[str, str]]
    separator: str
    prefix: str
    rfc3986: bool
    no_brackets: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with request and encode subcommands."""
    parser = argparse.ArgumentParser(
        prog="http-builder",
        description="Build and send HTTP requests from layered headers, cookies and options.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Execution mode")

    # Request subcommand
    request_parser = subparsers.add_parser("request", help="Send one HTTP request")
    request_parser.add_argument("method", type=str.upper, help="HTTP method (GET, POST, ...)")
    request_parser.add_argument("url", help="Target URL")
    request_parser.add_argument(
        "--profile",
        type=Path,
        default=None,
        help="YAML request profile with headers, cookies, options and executor policy",
    )
    request_parser.add_argument(
        "-H", "--header",
        dest="headers",
        type=parse_header,
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Add a header (repeatable)",
    )
    request_parser.add_argument(
        "-b", "--cookie",
        dest="cookies",
        type=parse_pair,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Add a cookie (repeatable)",
    )
    request_parser.add_argument(
        "-d", "--data",
        dest="data",
        type=parse_pair,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Add a data field (repeatable; repeated keys become arrays)",
    )
    request_parser.add_argument(
        "--json",
        action="store_true",
        help="JSON-encode the request body",
    )
    request_parser.add_argument(
        "--query",
        action="store_true",
        help="Send data in the URL query string even for body-bearing methods",
    )
    request_parser.add_argument(
        "--no-brackets",
        action="store_true",
        help="Encode arrays as key=a&key=b instead of key[0]=a&key[1]=b",
    )
    request_parser.add_argument(
        "--timeout",
        type=positive_float,
        default=None,
        help="Request timeout in seconds",
    )
    request_parser.add_argument(
        "--include-status",
        action="store_true",
        help="Print the HTTP status line before the body",
    )
    request_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    # Encode subcommand
    encode_parser = subparsers.add_parser("encode", help="Print a query string for key=value pairs")
    encode_parser.add_argument(
        "pairs",
        type=parse_pair,
        nargs="*",
        metavar="KEY=VALUE",
        help="Fields to encode (repeated keys become arrays)",
    )
    encode_parser.add_argument("--separator", default="&", help="Pair separator (default: &)")
    encode_parser.add_argument("--prefix", default="", help="Prefix for numeric top-level keys")
    encode_parser.add_argument(
        "--rfc3986",
        action="store_true",
        help="Encode spaces as %%20 instead of +",
    )
    encode_parser.add_argument(
        "--no-brackets",
        action="store_true",
        help="Strip array index markers from keys",
    )

    return parser


def parse_request_args(namespace: argparse.Namespace) -> RequestArgs:
    return RequestArgs(
        method=namespace.method,
        url=namespace.url,
        profile=namespace.profile,
        headers=namespace.headers,
        cookies=namespace.cookies,
        data=namespace.data,
        json=namespace.json,
        query=namespace.query,
        no_brackets=namespace.no_brackets,
        timeout=namespace.timeout,
        include_status=namespace.include_status,
        verbose=namespace.verbose,
    )


def parse_encode_args(namespace: argparse.Namespace) -> EncodeArgs:
    return EncodeArgs(
        pairs=namespace.pairs,
        separator=namespace.separator,
        prefix=namespace.prefix,
        rfc3986=namespace.rfc3986,
        no_brackets=namespace.no_brackets,
    )


def parse_args(args: list[str] | None = None) -> RequestArgs | EncodeArgs:
    """Parse command-line arguments and return typed args dataclass.

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    parser = build_parser()
    namespace = parser.parse_args(args)

    if namespace.command == "request":
        return parse_request_args(namespace)
    elif namespace.command == "encode":
        return parse_encode_args(namespace)
    else:
        # Should not happen with required=True on subparsers
        parser.error(f"Unknown command: {namespace.command}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        parsed = parse_args(argv)

        if isinstance(parsed, RequestArgs):
            return run_request(parsed)
        return run_encode(parsed)

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


def run_request(args: RequestArgs, executor: RequestExecutor | None = None) -> int:
    """Run request mode.

    Args:
        args: Parsed request arguments.
        executor: Pre-built executor (tests); otherwise built from the profile.

    Returns:
        0 on success, 1 on configuration, codec or transport errors.
    """
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if executor is None:
            executor = build_executor(load_profile(args.profile)) if args.profile else RequestExecutor()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    state = executor.state
    state.add_headers(dict(args.headers)).add_cookies(dict(args.cookies))
    if args.timeout is not None:
        state.add_option(Opt.TIMEOUT, args.timeout)
    if args.no_brackets:
        state.set_suppress_array_brackets(True)

    data = pairs_to_data(args.data)
    payload = not args.query and args.method not in QUERY_ONLY_METHODS

    with executor:
        try:
            executor.acquire(args.url).execute(
                args.method, data, payload=payload, as_json=True if args.json else None
            )
        except (CodecError, TransportExecutionError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    response = executor.response
    if response.transport_error_code != 0:
        print(
            f"Error: Transport error {response.transport_error_code}: "
            f"{response.transport_error_message}",
            file=sys.stderr,
        )
        return 1
    if args.include_status:
        print(f"HTTP {response.status_code}")
    if isinstance(response.body, str):
        print(response.body)
    return 0


def run_encode(args: EncodeArgs) -> int:
    """Run encode mode: print the encoded query string."""
    dialect = EncodingDialect.RFC3986 if args.rfc3986 else EncodingDialect.RFC1738
    print(
        query_encoder.encode(
            pairs_to_data(args.pairs),
            numeric_prefix=args.prefix,
            separator=args.separator,
            dialect=dialect,
            suppress_brackets=args.no_brackets,
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
