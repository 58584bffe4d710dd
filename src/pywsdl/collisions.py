"""Detection of type-name collisions across schemas and consistent renaming of references.

Both passes are pure: `resolve_collisions` returns renamed copies of the schemas and
the mapping it applied, `Traverser` returns copies whose type references follow that
mapping. The parsed document graph is never modified in place.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

from pywsdl.model import WSDL, Attribute, ComplexType, Element, Message, QName, SimpleType, XSDSchema

logger = logging.getLogger(__name__)


@dataclass
class CollisionMap:
    """Renamed types, keyed by `(namespace, original name)`.

    Filled once by `resolve_collisions`; if a namespace declares the same name twice,
    references keep pointing at the first declaration.
    """

    renames: dict[tuple[str, str], str] = field(default_factory=dict)

    def add(self, namespace: str, original: str, renamed: str) -> None:
        key = (namespace, original)
        if key in self.renames:
            logger.debug(f"Type '{original}' is declared more than once in namespace '{namespace}'.")
            return
        self.renames[key] = renamed

    def lookup(self, namespace: str, name: str) -> str | None:
        return self.renames.get((namespace, name))

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self.renames

    def __len__(self) -> int:
        return len(self.renames)


def _declared_names(schemas: Iterable[XSDSchema]) -> Counter[str]:
    seen: Counter[str] = Counter()
    for schema in schemas:
        for complex_type in schema.complex_types:
            seen[complex_type.name] += 1
        for simple_type in schema.simple_types:
            seen[simple_type.name] += 1
    return seen


def resolve_collisions(schemas: Sequence[XSDSchema]) -> tuple[tuple[XSDSchema, ...], CollisionMap]:
    """Give every complex and simple type a name that is unique across all schemas.

    A name declared N times is replaced, in schema order, by the name suffixed with N,
    N-1, ..., 1. A suffixed name that is already declared elsewhere is skipped in favour
    of the next free number above it.

    Args:
        schemas (Sequence[XSDSchema]): Every schema of the document.

    Returns:
        tuple[tuple[XSDSchema, ...], CollisionMap]: The schemas with renamed declarations,
            and the renames that references have to follow.
    """
    seen = _declared_names(schemas)
    remaining = {name: count for name, count in seen.items() if count > 1 and name}
    taken = set(seen)
    collisions = CollisionMap()

    def rename(kind: str, schema: XSDSchema, original: str) -> str:
        number = remaining[original]
        remaining[original] -= 1

        update = f"{original}{number}"
        while update in taken:
            number += 1
            update = f"{original}{number}"
        taken.add(update)

        collisions.add(schema.target_namespace, original, update)
        logger.info(
            f"Collision detected: {kind} '{original}' renamed to '{update}' in namespace '{schema.target_namespace}'."
        )
        return update

    resolved = []
    for schema in schemas:
        complex_types = tuple(
            replace(complex_type, name=rename("ComplexType", schema, complex_type.name))
            if complex_type.name in remaining
            else complex_type
            for complex_type in schema.complex_types
        )
        simple_types = tuple(
            replace(simple_type, name=rename("SimpleType", schema, simple_type.name))
            if simple_type.name in remaining
            else simple_type
            for simple_type in schema.simple_types
        )
        resolved.append(replace(schema, complex_types=complex_types, simple_types=simple_types))

    return tuple(resolved), collisions


class Traverser:
    """Visits every declaration and rewrites type references to renamed types.

    The renamed schemas are available as `schemas` after construction. The traverser
    also answers which top-level element is declared with a given type.
    """

    def __init__(self, schemas: Sequence[XSDSchema], collisions: CollisionMap | None = None):
        self.collisions = collisions if collisions is not None else CollisionMap()
        self.schemas = tuple(self.traverse_schema(schema) for schema in schemas)

        # type name -> name of the first top-level element declared with that type
        self._element_names: dict[str, str] = {}
        for schema in self.schemas:
            for element in schema.elements:
                if element.type is not None:
                    self._element_names.setdefault(element.type.name, element.name)

    def rename(self, qname: QName | None) -> QName | None:
        if qname is None:
            return None
        renamed = self.collisions.lookup(qname.namespace, qname.name)
        if renamed is None:
            return qname
        return replace(qname, name=renamed)

    def traverse_schema(self, schema: XSDSchema) -> XSDSchema:
        return replace(
            schema,
            elements=tuple(self.traverse_element(element) for element in schema.elements),
            complex_types=tuple(self.traverse_complex_type(complex_type) for complex_type in schema.complex_types),
            simple_types=tuple(self.traverse_simple_type(simple_type) for simple_type in schema.simple_types),
        )

    def traverse_element(self, element: Element) -> Element:
        return replace(
            element,
            type=self.rename(element.type),
            complex_type=self.traverse_complex_type(element.complex_type) if element.complex_type else None,
            simple_type=self.traverse_simple_type(element.simple_type) if element.simple_type else None,
        )

    def traverse_attribute(self, attribute: Attribute) -> Attribute:
        return replace(
            attribute,
            type=self.rename(attribute.type),
            simple_type=self.traverse_simple_type(attribute.simple_type) if attribute.simple_type else None,
        )

    def traverse_complex_type(self, complex_type: ComplexType) -> ComplexType:
        return replace(
            complex_type,
            base=self.rename(complex_type.base),
            elements=tuple(self.traverse_element(element) for element in complex_type.elements),
            attributes=tuple(self.traverse_attribute(attribute) for attribute in complex_type.attributes),
        )

    def traverse_simple_type(self, simple_type: SimpleType) -> SimpleType:
        return replace(
            simple_type,
            base=self.rename(simple_type.base),
            item_type=self.rename(simple_type.item_type),
            member_types=tuple(self.rename(member) for member in simple_type.member_types),
        )

    def traverse_message(self, message: Message) -> Message:
        parts = tuple(replace(part, type=self.rename(part.type)) for part in message.parts)
        return replace(message, parts=parts)

    def traverse_definitions(self, definitions: WSDL) -> WSDL:
        """Return the document with the renamed schemas and renamed message part types."""
        return replace(
            definitions,
            schemas=self.schemas,
            messages=tuple(self.traverse_message(message) for message in definitions.messages),
        )

    def find_name_by_type(self, name: str) -> str:
        """Find the name of a top-level element declared with the given type.

        Args:
            name (str): The (possibly renamed) type name.

        Returns:
            str: The element name, or an empty string if no element has that type.
        """
        return self._element_names.get(name, "")
