"""Orchestration of a generation run, from fetching the WSDL to the generated artifacts."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from pywsdl import helper
from pywsdl.collisions import Traverser, resolve_collisions
from pywsdl.errors import GenerationError, InputError
from pywsdl.fetch import FetchCache, Location, fetch_file
from pywsdl.parser import parse_wsdl
from pywsdl.resolver import SchemaResolver
from pywsdl.writer import Writer

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE = "generated_from_wsdl"

HEADER = "header"
TYPES = "types"
OPERATIONS = "operations"
SOAP = "soap"
SERVER_HEADER = "server_header"
SERVER_WSDL = "server_wsdl"
SERVER = "server"

CLIENT_ARTIFACTS = (HEADER, TYPES, OPERATIONS, SOAP)
SERVER_ARTIFACTS = (SERVER_HEADER, SERVER_WSDL, SERVER)

# The concurrent generation tasks, in the order their failures are reported.
TASK_ORDER = (TYPES, OPERATIONS, SERVER)


class Generator:
    """Generates Python code from a WSDL document.

    A generator is used for a single run: `start` fetches and parses the document,
    resolves its external schemas, renames colliding types and then generates the
    types, operations and server artifacts concurrently.
    """

    def __init__(
        self,
        file: str,
        package: str = "",
        ignore_tls: bool = False,
        export_all_types: bool = True,
        module_name: str = "",
        cache: FetchCache | None = None,
    ):
        """Initialize the generator.

        Args:
            file (str): Path or URL of the WSDL document.
            package (str): Package name of the generated code. Defaults to `generated_from_wsdl`.
            ignore_tls (bool): Skip TLS certificate verification when downloading.
            export_all_types (bool): Upper-case the first character of generated type names.
            module_name (str): Module name of the generated client file.
            cache (FetchCache | None): Cache for downloaded documents.
        """
        if not file.strip():
            raise InputError("A WSDL file or URL is required.")

        self.location = Location.parse(file)
        self.package = package.strip() or DEFAULT_PACKAGE
        self.ignore_tls = ignore_tls
        self.export_all_types = export_all_types
        self.module_name = module_name or self.package
        self.cache = cache

        self.raw_wsdl = b""
        self.writer: Writer | None = None

        self._lock = threading.Lock()
        self._code: dict[str, str] = {}
        self._errors: dict[str, BaseException] = {}

    @property
    def make_public_fn(self) -> helper.MakePublicFn:
        return helper.make_public if self.export_all_types else helper.keep_identifier

    def unmarshal(self) -> Writer:
        """Fetch, parse and resolve the document, and build the writer for it."""
        self.raw_wsdl = fetch_file(self.location, self.ignore_tls, self.cache)
        definitions = parse_wsdl(self.raw_wsdl, str(self.location))

        definitions = SchemaResolver(self.ignore_tls, self.cache).resolve_definitions(definitions, self.location)

        schemas, collisions = resolve_collisions(definitions.schemas)
        traverser = Traverser(schemas, collisions)
        definitions = traverser.traverse_definitions(definitions)

        return Writer(
            definitions,
            traverser,
            package=self.package,
            module_name=self.module_name,
            source=str(self.location),
            raw_wsdl=self.raw_wsdl,
            make_public_fn=self.make_public_fn,
        )

    def _run_task(self, artifact: str, task: Callable[[], dict[str, str]]) -> None:
        try:
            code = task()
        except Exception as e:
            logger.debug(f"Generating {artifact} failed.", exc_info=True)
            with self._lock:
                self._errors[artifact] = e
            return

        with self._lock:
            self._code.update(code)

    def start(self) -> dict[str, str]:
        """Run the generation.

        Returns:
            dict[str, str]: Generated code by artifact: header, types, operations, soap,
                server_header, server_wsdl and server.

        Raises:
            GenerationError: If any of the concurrent generation tasks failed. The error
                carries every failure, the first in task order being reported.
        """
        self.writer = writer = self.unmarshal()

        tasks: dict[str, Callable[[], dict[str, str]]] = {
            TYPES: lambda: {TYPES: writer.gen_types()},
            OPERATIONS: lambda: {OPERATIONS: writer.gen_operations(), SOAP: writer.gen_soap()},
            SERVER: lambda: {SERVER_WSDL: writer.gen_server_wsdl(), SERVER: writer.gen_server()},
        }

        with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="pywsdl") as executor:
            futures = [executor.submit(self._run_task, artifact, task) for artifact, task in tasks.items()]
            for future in futures:
                future.result()

        if self._errors:
            errors = [(artifact, self._errors[artifact]) for artifact in TASK_ORDER if artifact in self._errors]
            raise GenerationError(errors)

        self._code[HEADER] = writer.gen_header()
        self._code[SERVER_HEADER] = writer.gen_server_header()

        return dict(self._code)

