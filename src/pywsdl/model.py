"""In-memory model of a WSDL 1.1 document and its XML schemas.

All nodes are frozen dataclasses. Passes that rename types (see `collisions`)
build new nodes with `dataclasses.replace` instead of editing the parsed graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import override

XSD_NS = "http://www.w3.org/2001/XMLSchema"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
WSDL_NS = "http://schemas.xmlsoap.org/wsdl/"
SOAP11_NS = "http://schemas.xmlsoap.org/wsdl/soap/"
SOAP12_NS = "http://schemas.xmlsoap.org/wsdl/soap12/"

UNBOUNDED = None


@dataclass(frozen=True)
class QName:
    """A namespace-qualified reference, e.g. the value of a `type` attribute."""

    namespace: str
    name: str

    @property
    def is_xsd(self) -> bool:
        """Whether the name refers to a built-in XML Schema type."""
        return self.namespace == XSD_NS

    @override
    def __str__(self) -> str:
        if self.namespace:
            return f"{{{self.namespace}}}{self.name}"
        return self.name


# ===== XML Schema =====


@dataclass(frozen=True)
class SimpleType:
    """A named or anonymous `xs:simpleType`.

    Attributes:
        name: The type name, empty for anonymous types.
        base: The restriction base, if the type is a restriction.
        enumeration: Enumerated values of the restriction.
        item_type: The item type of an `xs:list`.
        member_types: The member types of an `xs:union`.
        doc: Text of the type's documentation annotation.
    """

    name: str
    base: QName | None = None
    enumeration: tuple[str, ...] = ()
    item_type: QName | None = None
    member_types: tuple[QName, ...] = ()
    doc: str = ""


@dataclass(frozen=True)
class Attribute:
    """An `xs:attribute` declaration or reference."""

    name: str
    type: QName | None = None
    ref: QName | None = None
    use: str = "optional"
    simple_type: SimpleType | None = None
    doc: str = ""

    @property
    def required(self) -> bool:
        return self.use == "required"


@dataclass(frozen=True)
class Element:
    """An `xs:element` declaration, either top-level or local to a complex type.

    `max_occurs` is `UNBOUNDED` (None) for `maxOccurs="unbounded"`.
    `form` is the explicit `form` attribute of a local element, if any.
    """

    name: str
    type: QName | None = None
    ref: QName | None = None
    nillable: bool = False
    min_occurs: int = 1
    max_occurs: int | None = 1
    complex_type: ComplexType | None = None
    simple_type: SimpleType | None = None
    form: str | None = None
    doc: str = ""

    @property
    def optional(self) -> bool:
        return self.min_occurs == 0

    @property
    def repeated(self) -> bool:
        return self.max_occurs is UNBOUNDED or self.max_occurs > 1


@dataclass(frozen=True)
class ComplexType:
    """A named or anonymous `xs:complexType`.

    Sequences, choices and `xs:all` groups are flattened into `elements`.

    Attributes:
        name: The type name, empty for anonymous types.
        elements: Child element declarations in document order.
        attributes: Attribute declarations.
        base: Base type of a `complexContent` or `simpleContent` derivation.
        derivation: "extension", "restriction" or "" when the type is not derived.
        simple_content: Whether the type carries text content (`xs:simpleContent`).
        abstract: Value of the `abstract` attribute.
        doc: Text of the type's documentation annotation.
    """

    name: str
    elements: tuple[Element, ...] = ()
    attributes: tuple[Attribute, ...] = ()
    base: QName | None = None
    derivation: str = ""
    simple_content: bool = False
    abstract: bool = False
    doc: str = ""


@dataclass(frozen=True)
class Import:
    namespace: str
    schema_location: str


@dataclass(frozen=True)
class Include:
    schema_location: str


@dataclass(frozen=True)
class XSDSchema:
    """An `xs:schema`, either embedded in the WSDL `types` section or fetched."""

    target_namespace: str = ""
    element_form_default: str = "unqualified"
    attribute_form_default: str = "unqualified"
    imports: tuple[Import, ...] = ()
    includes: tuple[Include, ...] = ()
    elements: tuple[Element, ...] = ()
    complex_types: tuple[ComplexType, ...] = ()
    simple_types: tuple[SimpleType, ...] = ()

    @property
    def has_externals(self) -> bool:
        return bool(self.imports or self.includes)

    def element_namespace(self, element: Element, top_level: bool = False) -> str:
        """The namespace an element is serialized in, following `form` and `elementFormDefault`."""
        if top_level:
            return self.target_namespace
        form = element.form or self.element_form_default
        return self.target_namespace if form == "qualified" else ""


# ===== WSDL =====


@dataclass(frozen=True)
class Part:
    """A message part, referencing either an element or a type."""

    name: str
    element: QName | None = None
    type: QName | None = None


@dataclass(frozen=True)
class Message:
    name: str
    parts: tuple[Part, ...] = ()


@dataclass(frozen=True)
class Fault:
    name: str
    message: QName | None = None


@dataclass(frozen=True)
class Operation:
    """An abstract operation of a port type."""

    name: str
    input: QName | None = None
    output: QName | None = None
    faults: tuple[Fault, ...] = ()
    doc: str = ""


@dataclass(frozen=True)
class PortType:
    name: str
    operations: tuple[Operation, ...] = ()
    doc: str = ""


@dataclass(frozen=True)
class BindingOperation:
    name: str
    soap_action: str = ""
    style: str = ""


@dataclass(frozen=True)
class Binding:
    """A SOAP binding of a port type."""

    name: str
    type: QName | None = None
    style: str = "document"
    transport: str = ""
    operations: tuple[BindingOperation, ...] = ()


@dataclass(frozen=True)
class Port:
    name: str
    binding: QName | None = None
    address: str = ""


@dataclass(frozen=True)
class Service:
    name: str
    ports: tuple[Port, ...] = ()
    doc: str = ""


@dataclass(frozen=True)
class WSDL:
    """A parsed `wsdl:definitions` document.

    `schemas` starts with the schemas embedded in `wsdl:types`; the external
    schema resolver appends every schema it fetches.
    """

    name: str = ""
    target_namespace: str = ""
    schemas: tuple[XSDSchema, ...] = ()
    messages: tuple[Message, ...] = ()
    port_types: tuple[PortType, ...] = ()
    bindings: tuple[Binding, ...] = ()
    services: tuple[Service, ...] = ()
    doc: str = ""
