"""Command-line interface for generating Python SOAP clients and servers from WSDL documents."""

from __future__ import annotations

import argparse
import logging
import os.path
from collections.abc import Sequence

from pywsdl import __version__
from pywsdl.errors import PyWSDLError
from pywsdl.generator import DEFAULT_PACKAGE
from pywsdl.run import run

logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    """Setup for the parser.

    Returns:
        argparse.ArgumentParser: The parser after setup.
    """
    parser = argparse.ArgumentParser(
        prog="pywsdl",
        description="Generate Python SOAP client and server code from a WSDL 1.1 document.",
    )

    parser.add_argument(
        "wsdl",
        type=str,
        help="path or URL of the WSDL document.",
    )

    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default="",
        help="file name of the generated client module; defaults to the WSDL file name with a .py suffix.",
    )

    parser.add_argument(
        "-p",
        "--package",
        type=str,
        default=DEFAULT_PACKAGE,
        help=f"package of the generated code (default: {DEFAULT_PACKAGE}).",
    )

    parser.add_argument(
        "-d",
        "--dir",
        type=str,
        default="./",
        help="directory under which the package directory is created (default: ./).",
    )

    parser.add_argument(
        "-i",
        "--insecure",
        default=False,
        action="store_true",
        help="skip TLS certificate verification when downloading documents.",
    )

    parser.add_argument(
        "--make-public",
        dest="make_public",
        default=True,
        action=argparse.BooleanOptionalAction,
        help="upper-case the first character of generated type names.",
    )

    parser.add_argument(
        "--no-cache",
        dest="no_cache",
        default=False,
        action="store_true",
        help="always download external documents instead of using the local cache.",
    )

    parser.add_argument(
        "--no-format",
        dest="no_format",
        default=False,
        action="store_true",
        help="write the generated code without formatting it with ruff.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        default=False,
        action="store_true",
        help="log debug output.",
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the code generator.

    Args:
        argv (Sequence[str] | None, optional): Run arguments. Defaults to None.

    Returns:
        int: Error code.
    """
    parser = setup_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    root_directory = os.getcwd()
    logging.debug("Working from root directory: %s", root_directory)

    try:
        run(args, root_directory)
    except PyWSDLError as e:
        logger.error(str(e))
        return 1

    logger.info("Done.")
    return 0
