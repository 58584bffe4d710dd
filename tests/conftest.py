"""Pytest configuration and fixtures for pywsdl tests."""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

import pytest

from pywsdl.generator import Generator

# Test directory structure
TESTS_DIR = Path(__file__).parent
WSDL_DIR = TESTS_DIR / "wsdl"

STOCKQUOTE_WSDL = WSDL_DIR / "stockquote.wsdl"
IMPORTS_WSDL = WSDL_DIR / "imports" / "main.wsdl"
INCLUDE_WSDL = WSDL_DIR / "include" / "main.wsdl"
COLLISIONS_WSDL = WSDL_DIR / "collisions.wsdl"
CONTROL_WSDL = WSDL_DIR / "control.wsdl"


def make_args(wsdl: str | Path, **overrides) -> argparse.Namespace:
    """Build the arguments of a run, as the command line parser would."""
    values = {
        "wsdl": str(wsdl),
        "output": "",
        "package": "generated_from_wsdl",
        "dir": "./",
        "insecure": False,
        "make_public": True,
        "no_cache": True,
        "no_format": True,
        "verbose": False,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture
def stockquote_writer():
    """A writer for the stock quote document, after resolution and renaming."""
    return Generator(str(STOCKQUOTE_WSDL)).unmarshal()


@pytest.fixture
def import_generated(monkeypatch):
    """Import a generated module from a directory, undoing the import afterwards."""
    imported: list[str] = []

    def _import(directory: Path, module: str):
        monkeypatch.syspath_prepend(str(directory))
        importlib.invalidate_caches()
        imported.append(module.split(".")[0])
        return importlib.import_module(module)

    yield _import

    for name in list(sys.modules):
        if any(name == package or name.startswith(f"{package}.") for package in imported):
            del sys.modules[name]
