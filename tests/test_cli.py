"""Tests for http_builder.cli.

Tests cover:
- Argument parsing for request and encode subcommands
- Argument type validation (headers, key=value pairs, timeouts)
- Running request mode against a fake transport
- Encode mode output
"""

import argparse
from pathlib import Path

import pytest

from http_builder.cli import (
    EncodeArgs,
    RequestArgs,
    main,
    pairs_to_data,
    parse_args,
    parse_header,
    parse_pair,
    positive_float,
    run_request,
)
from http_builder.executor import RequestExecutor
from http_builder.models import TransportResult
from http_builder.options import Opt
from tests.conftest import FakeTransport


# =============================================================================
# Argument Types
# =============================================================================


class TestArgumentTypes:
    def test_parse_header(self):
        assert parse_header("Accept: application/json") == ("Accept", "application/json")

    def test_parse_header_keeps_colons_in_value(self):
        assert parse_header("X-Time: 12:30") == ("X-Time", "12:30")

    @pytest.mark.parametrize("value", ["NoColon", ": value"])
    def test_parse_header_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_header(value)

    def test_parse_pair(self):
        assert parse_pair("page=1") == ("page", "1")
        assert parse_pair("q=a=b") == ("q", "a=b")
        assert parse_pair("empty=") == ("empty", "")

    @pytest.mark.parametrize("value", ["novalue", "=x"])
    def test_parse_pair_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_pair(value)

    def test_positive_float(self):
        assert positive_float("2.5") == 2.5
        with pytest.raises(argparse.ArgumentTypeError):
            positive_float("0")
        with pytest.raises(argparse.ArgumentTypeError):
            positive_float("abc")

    def test_pairs_to_data_repeated_keys(self):
        data = pairs_to_data([("a", "1"), ("b", "2"), ("a", "3"), ("a", "4")])
        assert data == {"a": ["1", "3", "4"], "b": "2"}


# =============================================================================
# Parsing
# =============================================================================


class TestParseArgs:
    def test_request_minimal(self):
        args = parse_args(["request", "get", "http://x"])
        assert isinstance(args, RequestArgs)
        assert args.method == "GET"
        assert args.url == "http://x"
        assert args.profile is None
        assert args.headers == []
        assert args.json is False
        assert args.timeout is None

    def test_request_full(self):
        args = parse_args([
            "request", "POST", "http://x",
            "--profile", "p.yaml",
            "-H", "Accept: application/json",
            "-b", "s=1",
            "-d", "a=1", "-d", "a=2",
            "--json", "--no-brackets", "--timeout", "5", "--include-status",
        ])
        assert args.profile == Path("p.yaml")
        assert args.headers == [("Accept", "application/json")]
        assert args.cookies == [("s", "1")]
        assert args.data == [("a", "1"), ("a", "2")]
        assert args.json is True
        assert args.no_brackets is True
        assert args.timeout == 5.0
        assert args.include_status is True

    def test_request_missing_url(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["request", "GET"])
        assert exc_info.value.code == 2

    def test_encode(self):
        args = parse_args(["encode", "a=1", "b=x y", "--separator", ";", "--rfc3986"])
        assert isinstance(args, EncodeArgs)
        assert args.pairs == [("a", "1"), ("b", "x y")]
        assert args.separator == ";"
        assert args.rfc3986 is True

    def test_missing_command(self):
        with pytest.raises(SystemExit):
            parse_args([])


# =============================================================================
# Running
# =============================================================================


def _request_args(**overrides) -> RequestArgs:
    values = dict(
        method="GET",
        url="http://x/users",
        profile=None,
        headers=[],
        cookies=[],
        data=[],
        json=False,
        query=False,
        no_brackets=False,
        timeout=None,
        include_status=False,
        verbose=False,
    )
    values.update(overrides)
    return RequestArgs(**values)


class TestRunRequest:
    def test_get_prints_body(self, capsys):
        transport = FakeTransport([TransportResult(body="hello")])
        code = run_request(
            _request_args(data=[("page", "1")], include_status=True),
            RequestExecutor(transport=transport),
        )
        assert code == 0
        assert transport.last_options[Opt.URL] == "http://x/users?page=1"
        assert capsys.readouterr().out == "HTTP 200\nhello\n"

    def test_post_json_with_headers(self):
        transport = FakeTransport()
        run_request(
            _request_args(
                method="POST",
                headers=[("Content-Type", "application/json")],
                cookies=[("s", "1")],
                data=[("email", "a@b.c")],
                json=True,
                timeout=3.0,
            ),
            RequestExecutor(transport=transport),
        )
        options = transport.last_options
        assert options[Opt.POST_FIELDS] == '{"email":"a@b.c"}'
        assert options[Opt.HTTP_HEADER] == ["Content-Type: application/json"]
        assert options[Opt.COOKIE] == "s=1"
        assert options[Opt.TIMEOUT] == 3.0

    def test_query_flag_keeps_data_in_url(self):
        transport = FakeTransport()
        run_request(
            _request_args(method="DELETE", data=[("id", "1"), ("id", "2")], no_brackets=True, query=True),
            RequestExecutor(transport=transport),
        )
        assert transport.last_options[Opt.URL] == "http://x/users?id=1&id=2"
        assert Opt.POST_FIELDS not in transport.last_options

    def test_transport_error_returns_1(self, capsys):
        transport = FakeTransport([TransportResult(body=False, error_code=7, error_message="refused")])
        code = run_request(_request_args(), RequestExecutor(transport=transport))
        assert code == 1
        assert "Transport error 7: refused" in capsys.readouterr().err

    def test_stored_transport_error_returns_1(self, capsys):
        transport = FakeTransport([TransportResult(body=False, error_code=7, error_message="refused")])
        executor = RequestExecutor(transport=transport, raise_on_transport_error=False)
        code = run_request(_request_args(include_status=True), executor)
        assert code == 1
        captured = capsys.readouterr()
        assert "Error: Transport error 7: refused" in captured.err
        assert captured.out == ""

    def test_missing_profile_returns_1(self, tmp_path, capsys):
        code = run_request(_request_args(profile=tmp_path / "missing.yaml"))
        assert code == 1
        assert "not found" in capsys.readouterr().err


class TestEncodeCommand:
    def test_default_output(self, capsys):
        assert main(["encode", "a=1", "a=2", "q=x y"]) == 0
        assert capsys.readouterr().out == "a%5B0%5D=1&a%5B1%5D=2&q=x+y\n"

    def test_options(self, capsys):
        main(["encode", "a=1", "a=2", "q=x y", "--rfc3986", "--no-brackets", "--separator", ";"])
        assert capsys.readouterr().out == "a=1;a=2;q=x%20y\n"
