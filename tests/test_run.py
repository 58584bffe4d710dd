"""Tests for argument validation, formatting and writing of a generation run."""

from __future__ import annotations

import logging
import subprocess

import pytest

from conftest import STOCKQUOTE_WSDL, make_args
from pywsdl import generator, run
from pywsdl.errors import InputError


@pytest.fixture
def no_fetch(monkeypatch):
    """Fail the test if the run fetches anything."""

    def fetch_file(location, ignore_tls=False, cache=None):
        pytest.fail(f"'{location}' was fetched")

    monkeypatch.setattr(generator, "fetch_file", fetch_file)


class TestDefaultOutput:
    def test_from_path(self):
        assert run.default_output("wsdl/stockquote.wsdl") == "stockquote.py"

    def test_from_url(self):
        assert run.default_output("https://example.com/ws/order-service.wsdl?wsdl") == "order_service.py"

    def test_fallback(self):
        assert run.default_output("https://example.com/") == f"{generator.DEFAULT_PACKAGE}.py"


class TestValidate:
    """Argument checks that run before anything is fetched."""

    def test_valid_arguments(self, tmp_path):
        run.validate("service.wsdl", "myservice", "service.py", str(tmp_path))

    def test_empty_wsdl(self, tmp_path):
        with pytest.raises(InputError, match="WSDL file or URL is required"):
            run.validate("", "myservice", "service.py", str(tmp_path))

    def test_invalid_package(self, tmp_path):
        with pytest.raises(InputError, match="my-service"):
            run.validate("service.wsdl", "my-service", "service.py", str(tmp_path))

    def test_invalid_output(self, tmp_path):
        with pytest.raises(InputError, match="not a valid Python module name"):
            run.validate("service.wsdl", "myservice", "service.txt", str(tmp_path))

    def test_output_is_input(self, tmp_path):
        wsdl = tmp_path / "myservice" / "service.py"

        with pytest.raises(InputError, match="Output file cannot be the input WSDL file."):
            run.validate(str(wsdl), "myservice", "service.py", str(tmp_path))


class TestFormatOutputs:
    """Formatting with ruff, and the fallback to unformatted code."""

    def test_missing_ruff_returns_raw_input(self, monkeypatch, caplog):
        def fake_run(command, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", "ruff")

        monkeypatch.setattr(run.subprocess, "run", fake_run)

        with caplog.at_level(logging.WARNING):
            assert run.format_outputs("x=1\n") == "x=1\n"
        assert "Ruff could not be run" in caplog.text

    def test_rejected_code_returns_raw_input(self, monkeypatch, caplog):
        def fake_run(command, **kwargs):
            if command[1] == "format":
                raise subprocess.CalledProcessError(2, command, stderr=b"error: Failed to parse")
            return subprocess.CompletedProcess(command, 0)

        monkeypatch.setattr(run.subprocess, "run", fake_run)

        with caplog.at_level(logging.WARNING):
            assert run.format_outputs("def (:\n") == "def (:\n"
        assert "Ruff formatting failed" in caplog.text

    def test_formatted_file_is_read_back(self, monkeypatch):
        def fake_run(command, **kwargs):
            if command[1] == "format":
                with open(command[-1], "w", encoding="utf-8") as f:
                    f.write("x = 1\n")
            return subprocess.CompletedProcess(command, 0)

        monkeypatch.setattr(run.subprocess, "run", fake_run)

        assert run.format_outputs("x=1\n") == "x = 1\n"


class TestWriteOutputs:
    def test_creates_package(self, tmp_path):
        client, server = run.write_outputs(str(tmp_path), "quotes", "stockquote.py", "# client\n", "# server\n")

        assert client == tmp_path / "quotes" / "stockquote.py"
        assert server == tmp_path / "quotes" / "server_stockquote.py"
        assert client.read_text() == "# client\n"
        assert server.read_text() == "# server\n"
        assert (tmp_path / "quotes" / "__init__.py").read_text() == ""

    def test_keeps_existing_init(self, tmp_path):
        package = tmp_path / "quotes"
        package.mkdir()
        (package / "__init__.py").write_text("VERSION = 1\n")

        run.write_outputs(str(tmp_path), "quotes", "stockquote.py", "", "")

        assert (package / "__init__.py").read_text() == "VERSION = 1\n"

    def test_failed_write_keeps_previous_files(self, tmp_path):
        package = tmp_path / "quotes"
        package.mkdir()
        (package / "stockquote.py").write_text("# old client\n")

        with pytest.raises(UnicodeEncodeError):
            run.write_outputs(str(tmp_path), "quotes", "stockquote.py", "# client\n", "# server \ud800\n")

        assert (package / "stockquote.py").read_text() == "# old client\n"
        assert sorted(path.name for path in package.iterdir()) == ["__init__.py", "stockquote.py"]


class TestRun:
    """End-to-end runs writing into a temporary directory."""

    def test_generates_client_and_server(self, tmp_path):
        client, server = run.run(make_args(STOCKQUOTE_WSDL, dir=str(tmp_path), package="quotes"), str(tmp_path))

        assert client == tmp_path / "quotes" / "stockquote.py"
        assert server == tmp_path / "quotes" / "server_stockquote.py"

        client_code = client.read_text()
        assert client_code.startswith('"""Code generated by pywsdl')
        assert client_code.index("class TradePrice:") < client_code.index("class StockQuotePortType:")
        assert client_code.index("class StockQuotePortType:") < client_code.index("def new_stockQuotePort(")

        server_code = server.read_text()
        assert "from .stockquote import *  # noqa: F403" in server_code
        assert server_code.index('WSDL = """') < server_code.index("class StockQuotePortTypeService:")

    def test_relative_wsdl_uses_root_directory(self, tmp_path):
        root = STOCKQUOTE_WSDL.parent
        args = make_args("stockquote.wsdl", dir=str(tmp_path), output="quotes.py")

        client, _ = run.run(args, str(root))

        assert client == tmp_path / generator.DEFAULT_PACKAGE / "quotes.py"

    def test_invalid_arguments_fail_before_fetching(self, tmp_path, no_fetch):
        wsdl = tmp_path / "myservice" / "service.py"
        args = make_args(wsdl, dir=str(tmp_path), package="myservice", output="service.py")

        with pytest.raises(InputError, match="Output file cannot be the input WSDL file."):
            run.run(args, str(tmp_path))

        assert not (tmp_path / "myservice").exists()

    def test_relative_output_equal_to_input(self, tmp_path, no_fetch):
        args = make_args("service.py", dir=str(tmp_path), output="service.py")

        with pytest.raises(InputError, match="Output file cannot be the input WSDL file."):
            run.run(args, str(tmp_path))

    def test_relative_input_inside_output_directory(self, tmp_path, no_fetch):
        args = make_args("myservice/service.py", dir=".", package="myservice", output="service.py")

        with pytest.raises(InputError, match="Output file cannot be the input WSDL file."):
            run.run(args, str(tmp_path))

    def test_failed_generation_writes_nothing(self, tmp_path, monkeypatch):
        def fail(self):
            raise RuntimeError("server exploded")

        monkeypatch.setattr(run.Generator, "start", fail)

        with pytest.raises(RuntimeError):
            run.run(make_args(STOCKQUOTE_WSDL, dir=str(tmp_path)), str(tmp_path))

        assert list(tmp_path.iterdir()) == []

    def test_outputs_are_formatted(self, tmp_path, monkeypatch):
        formatted = []

        def fake_format(raw_input):
            formatted.append(raw_input)
            return f"# formatted\n{raw_input}"

        monkeypatch.setattr(run, "format_outputs", fake_format)

        client, server = run.run(make_args(STOCKQUOTE_WSDL, dir=str(tmp_path), no_format=False), str(tmp_path))

        assert len(formatted) == 2
        assert client.read_text().startswith("# formatted\n")
        assert server.read_text().startswith("# formatted\n")
