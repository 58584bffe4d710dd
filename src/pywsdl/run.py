"""Top-level module for code generation."""

from __future__ import annotations

import argparse
import logging
import os
import subprocess
import tempfile
from pathlib import Path
from urllib.parse import urlparse

from pywsdl import generator
from pywsdl.errors import InputError
from pywsdl.fetch import FetchCache
from pywsdl.generator import Generator

logger = logging.getLogger(__name__)

PY_SUFFIX = ".py"
SERVER_PREFIX = "server_"


def default_output(wsdl: str) -> str:
    """Derive the output file name from the WSDL location, e.g. 'stockquote.wsdl' gives 'stockquote.py'.

    Args:
        wsdl (str): Path or URL of the WSDL document.

    Returns:
        str: The output file name.
    """
    path = urlparse(wsdl).path if "://" in wsdl else wsdl
    stem = Path(path).stem.replace("-", "_").replace(".", "_")
    if not stem.isidentifier():
        stem = generator.DEFAULT_PACKAGE
    return stem + PY_SUFFIX


def validate(wsdl: str, package: str, output: str, directory: str, root_directory: str = ".") -> None:
    """Check the arguments of a run before anything is fetched.

    Args:
        wsdl (str): Path or URL of the WSDL document.
        package (str): Package name of the generated code.
        output (str): File name of the generated client module.
        directory (str): Directory the package is written to.
        root_directory (str): The directory a relative WSDL path is resolved against.

    Raises:
        InputError: If any argument is invalid.
    """
    if not wsdl.strip():
        raise InputError("A WSDL file or URL is required.")

    if not package.isidentifier():
        raise InputError(f"Package name '{package}' is not a valid Python identifier.")

    if output == wsdl:
        raise InputError("Output file cannot be the input WSDL file.")

    if "://" not in wsdl:
        output_path = os.path.join(directory, package, output)
        if os.path.abspath(output_path) == os.path.abspath(os.path.join(root_directory, wsdl)):
            raise InputError("Output file cannot be the input WSDL file.")

    if not output.endswith(PY_SUFFIX) or not Path(output).stem.isidentifier():
        raise InputError(f"Output file '{output}' is not a valid Python module name.")


def format_outputs(raw_input: str) -> str:
    """Formats raw input using ruff.

    Imports are sorted with `ruff check --fix --select I`, the code is then formatted
    with `ruff format`. If ruff is missing or rejects the code, the raw input is returned.

    Args:
        raw_input (str): The unformatted input.

    Returns:
        str: The formatted outputs.
    """
    with tempfile.NamedTemporaryFile(mode="w", suffix=PY_SUFFIX, delete=False, encoding="utf-8") as f:
        temp_path = Path(f.name)
        f.write(raw_input)

    try:
        subprocess.run(
            ["ruff", "check", "--fix", "--select", "I", str(temp_path)],
            capture_output=True,
            check=False,
        )

        subprocess.run(
            ["ruff", "format", str(temp_path)],
            capture_output=True,
            check=True,
        )

        return temp_path.read_text(encoding="utf-8")

    except subprocess.CalledProcessError as e:
        logger.warning(f"Ruff formatting failed, writing unformatted code: {e}")
        logger.debug(f"Stderr: {(e.stderr or b'').decode('utf-8', errors='replace')}")
        return raw_input

    except OSError as e:
        logger.warning(f"Ruff could not be run, writing unformatted code: {e}")
        return raw_input

    finally:
        temp_path.unlink(missing_ok=True)


def write_outputs(directory: str, package: str, output: str, client: str, server: str) -> tuple[Path, Path]:
    """Write the client and server files into the package directory.

    The package directory is created if needed and receives an `__init__.py` if it has none.
    Both files are first written next to their targets and only renamed into place once
    both writes succeeded.

    Returns:
        tuple[Path, Path]: The paths of the client and the server file.
    """
    package_directory = Path(directory) / package
    package_directory.mkdir(parents=True, exist_ok=True)

    init_file = package_directory / "__init__.py"
    if not init_file.exists():
        init_file.write_text("", encoding="utf-8")

    client_path = package_directory / output
    server_path = package_directory / f"{SERVER_PREFIX}{output}"

    staged: list[tuple[Path, Path]] = []
    try:
        for path, content in ((client_path, client), (server_path, server)):
            with tempfile.NamedTemporaryFile(
                mode="w", dir=package_directory, prefix=f".{path.stem}.", suffix=".tmp", delete=False, encoding="utf-8"
            ) as f:
                staged.append((Path(f.name), path))
                f.write(content)

        for temp_path, path in staged:
            os.replace(temp_path, path)

    finally:
        for temp_path, _ in staged:
            temp_path.unlink(missing_ok=True)

    logger.info(f"Wrote '{client_path}' and '{server_path}'.")
    return client_path, server_path


def run(args: argparse.Namespace, root_directory: str) -> tuple[Path, Path]:
    """Generate the client and server code for a WSDL document.

    Nothing is written unless the generation succeeds as a whole.

    Args:
        args (argparse.Namespace): The arguments that were passed when calling the generator.
        root_directory (str): The directory, from which the generator is executed.

    Returns:
        tuple[Path, Path]: The paths of the client and the server file.
    """
    wsdl: str = args.wsdl
    package: str = (getattr(args, "package", "") or generator.DEFAULT_PACKAGE).strip()
    output: str = getattr(args, "output", "") or default_output(wsdl)
    directory = os.path.join(root_directory, getattr(args, "dir", "") or ".")
    skip_format: bool = getattr(args, "no_format", False)
    use_cache: bool = not getattr(args, "no_cache", False)

    validate(wsdl, package, output, directory, root_directory)

    if "://" not in wsdl and not os.path.isabs(wsdl):
        wsdl = os.path.join(root_directory, wsdl)

    gen = Generator(
        wsdl,
        package,
        ignore_tls=getattr(args, "insecure", False),
        export_all_types=getattr(args, "make_public", True),
        module_name=Path(output).stem,
        cache=FetchCache() if use_cache else None,
    )
    code = gen.start()

    client = "".join(code[artifact] for artifact in generator.CLIENT_ARTIFACTS)
    server = "".join(code[artifact] for artifact in generator.SERVER_ARTIFACTS)

    if not skip_format:
        client = format_outputs(client)
        server = format_outputs(server)

    return write_outputs(directory, package, output, client, server)
