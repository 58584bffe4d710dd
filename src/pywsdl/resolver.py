"""Recursive resolution of externally referenced XML schemas."""

from __future__ import annotations

import logging
from dataclasses import replace

from pywsdl.fetch import FetchCache, Location, fetch_file
from pywsdl.model import WSDL, XSDSchema
from pywsdl.parser import parse_schema

logger = logging.getLogger(__name__)


class SchemaResolver:
    """Fetches every schema reachable through `xs:import` and `xs:include`.

    Each absolute location is fetched at most once, which also terminates import cycles.
    Resolved schemas are appended to `schemas`, a referenced schema always ahead of the
    schema that referenced it.
    """

    def __init__(self, ignore_tls: bool = False, cache: FetchCache | None = None):
        self.ignore_tls = ignore_tls
        self.cache = cache
        self.resolved: set[str] = set()
        self.schemas: list[XSDSchema] = []

    def resolve_definitions(self, definitions: WSDL, location: Location) -> WSDL:
        """Resolve the externals of every schema embedded in a WSDL document.

        Args:
            definitions (WSDL): The parsed WSDL document.
            location (Location): Where the WSDL document was read from.

        Returns:
            WSDL: A copy of the document whose schemas include all resolved externals.
        """
        self.resolved.add(str(location))
        self.schemas = list(definitions.schemas)

        for schema in definitions.schemas:
            self.resolve(schema, location)

        return replace(definitions, schemas=tuple(self.schemas))

    def resolve(self, schema: XSDSchema, location: Location) -> None:
        """Resolve the imports and includes of one schema.

        Imports without a `schemaLocation` are reported and skipped. Any fetch or parse
        error aborts the resolution.

        Args:
            schema (XSDSchema): The schema whose externals should be resolved.
            location (Location): The location relative references are resolved against.
        """
        for schema_import in schema.imports:
            if not schema_import.schema_location:
                logger.warning(
                    f"Don't know where to find XSD for namespace '{schema_import.namespace}', skipping import."
                )
                continue
            self._download(location, schema_import.schema_location, "")

        for include in schema.includes:
            if not include.schema_location:
                logger.warning(f"Skipping include without schemaLocation in namespace '{schema.target_namespace}'.")
                continue
            self._download(location, include.schema_location, schema.target_namespace)

    def _download(self, base: Location, reference: str, chameleon_namespace: str) -> None:
        location = base.join(reference)
        schema_key = str(location)
        if schema_key in self.resolved:
            return
        self.resolved.add(schema_key)

        data = fetch_file(location, self.ignore_tls, self.cache)
        new_schema = parse_schema(data, schema_key, chameleon_namespace)

        if new_schema.has_externals:
            self.resolve(new_schema, location)

        self.schemas.append(new_schema)
