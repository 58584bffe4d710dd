"""Unmarshal WSDL and XSD documents into the document model."""

from __future__ import annotations

import logging
from dataclasses import replace

from lxml import etree

from pywsdl.errors import ParseError
from pywsdl.model import (
    SOAP11_NS,
    SOAP12_NS,
    UNBOUNDED,
    WSDL,
    WSDL_NS,
    XSD_NS,
    Attribute,
    Binding,
    BindingOperation,
    ComplexType,
    Element,
    Fault,
    Import,
    Include,
    Message,
    Operation,
    Part,
    Port,
    PortType,
    QName,
    Service,
    SimpleType,
    XSDSchema,
)

logger = logging.getLogger(__name__)

SOAP_NAMESPACES = (SOAP11_NS, SOAP12_NS)


def _local(node: etree._Element) -> str:
    return etree.QName(node).localname


def _is(node: etree._Element, namespace: str, *names: str) -> bool:
    if not isinstance(node.tag, str):
        # Comments and processing instructions.
        return False
    qname = etree.QName(node)
    return qname.namespace == namespace and qname.localname in names


def _children(node: etree._Element, namespace: str, *names: str) -> list[etree._Element]:
    return [child for child in node if _is(child, namespace, *names)]


def _child(node: etree._Element, namespace: str, *names: str) -> etree._Element | None:
    children = _children(node, namespace, *names)
    return children[0] if children else None


def _documentation(node: etree._Element, namespace: str) -> str:
    """Collect the documentation text attached to a node."""
    if namespace == XSD_NS:
        containers = _children(node, XSD_NS, "annotation")
    else:
        containers = [node]
    texts = []
    for container in containers:
        for documentation in _children(container, namespace, "documentation"):
            texts.append("".join(documentation.itertext()).strip())
    return "\n".join(text for text in texts if text)


def _occurs(value: str | None, default: int) -> int | None:
    if value is None:
        return default
    if value == "unbounded":
        return UNBOUNDED
    try:
        return int(value)
    except ValueError:
        return default


def _boolean(value: str | None) -> bool:
    return value in ("true", "1")


def _load(data: bytes, location: str) -> etree._Element:
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
    try:
        return etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise ParseError(location, str(e)) from e


class _Parser:
    """Shared QName resolution for WSDL and schema parsing."""

    def __init__(self, location: str, target_namespace: str):
        self.location = location
        self.target_namespace = target_namespace

    def qname(self, node: etree._Element, value: str | None) -> QName | None:
        """Resolve a prefixed name against the prefixes in scope at `node`.

        Unknown prefixes and unprefixed names without a default namespace fall back to
        the target namespace of the document.
        """
        if not value:
            return None

        value = value.strip()
        if ":" in value:
            prefix, name = value.split(":", 1)
            namespace = node.nsmap.get(prefix)
            if namespace is None:
                logger.debug(f"Unknown prefix '{prefix}' in '{value}' ({self.location}).")
                namespace = self.target_namespace
        else:
            name = value
            namespace = node.nsmap.get(None) or self.target_namespace

        return QName(namespace, name)


class SchemaParser(_Parser):
    """Builds an `XSDSchema` from an `xs:schema` element."""

    def parse(self, node: etree._Element) -> XSDSchema:
        imports = tuple(
            Import(namespace=child.get("namespace", ""), schema_location=child.get("schemaLocation", ""))
            for child in _children(node, XSD_NS, "import")
        )
        includes = tuple(
            Include(schema_location=child.get("schemaLocation", ""))
            for child in _children(node, XSD_NS, "include", "redefine")
        )

        return XSDSchema(
            target_namespace=self.target_namespace,
            element_form_default=node.get("elementFormDefault", "unqualified"),
            attribute_form_default=node.get("attributeFormDefault", "unqualified"),
            imports=imports,
            includes=includes,
            elements=tuple(self.element(child) for child in _children(node, XSD_NS, "element")),
            complex_types=tuple(
                self.complex_type(child, child.get("name", "")) for child in _children(node, XSD_NS, "complexType")
            ),
            simple_types=tuple(
                self.simple_type(child, child.get("name", "")) for child in _children(node, XSD_NS, "simpleType")
            ),
        )

    def element(self, node: etree._Element) -> Element:
        ref = self.qname(node, node.get("ref"))
        name = node.get("name") or (ref.name if ref else "")

        complex_node = _child(node, XSD_NS, "complexType")
        simple_node = _child(node, XSD_NS, "simpleType")

        return Element(
            name=name,
            type=self.qname(node, node.get("type")),
            ref=ref,
            nillable=_boolean(node.get("nillable")),
            min_occurs=_occurs(node.get("minOccurs"), 1) or 0,
            max_occurs=_occurs(node.get("maxOccurs"), 1),
            complex_type=self.complex_type(complex_node, "") if complex_node is not None else None,
            simple_type=self.simple_type(simple_node, "") if simple_node is not None else None,
            form=node.get("form"),
            doc=_documentation(node, XSD_NS),
        )

    def attribute(self, node: etree._Element) -> Attribute:
        ref = self.qname(node, node.get("ref"))
        simple_node = _child(node, XSD_NS, "simpleType")

        return Attribute(
            name=node.get("name") or (ref.name if ref else ""),
            type=self.qname(node, node.get("type")),
            ref=ref,
            use=node.get("use", "optional"),
            simple_type=self.simple_type(simple_node, "") if simple_node is not None else None,
            doc=_documentation(node, XSD_NS),
        )

    def particles(self, node: etree._Element, optional: bool = False, repeated: bool = False) -> list[Element]:
        """Flatten the elements of a sequence, choice or all group.

        Elements of a choice, or of an optional group, become optional. Elements of a
        repeated group become repeated.
        """
        optional = optional or _local(node) == "choice" or _occurs(node.get("minOccurs"), 1) == 0
        max_occurs = _occurs(node.get("maxOccurs"), 1)
        repeated = repeated or max_occurs is UNBOUNDED or max_occurs > 1

        elements: list[Element] = []
        for child in node:
            if _is(child, XSD_NS, "element"):
                element = self.element(child)
                if optional:
                    element = replace(element, min_occurs=0)
                if repeated:
                    element = replace(element, max_occurs=UNBOUNDED)
                elements.append(element)
            elif _is(child, XSD_NS, "sequence", "choice", "all"):
                elements.extend(self.particles(child, optional, repeated))
            elif _is(child, XSD_NS, "any", "group"):
                logger.debug(f"Skipping unsupported particle '{_local(child)}' in '{self.location}'.")
        return elements

    def _content(self, node: etree._Element) -> tuple[list[Element], list[Attribute]]:
        elements: list[Element] = []
        attributes: list[Attribute] = []
        for child in node:
            if _is(child, XSD_NS, "sequence", "choice", "all"):
                elements.extend(self.particles(child))
            elif _is(child, XSD_NS, "attribute"):
                attributes.append(self.attribute(child))
        return elements, attributes

    def complex_type(self, node: etree._Element, name: str) -> ComplexType:
        elements, attributes = self._content(node)
        base = None
        derivation = ""

        content = _child(node, XSD_NS, "complexContent", "simpleContent")
        simple_content = content is not None and _local(content) == "simpleContent"
        if content is not None:
            derived = _child(content, XSD_NS, "extension", "restriction")
            if derived is not None:
                base = self.qname(derived, derived.get("base"))
                derivation = _local(derived)
                derived_elements, derived_attributes = self._content(derived)
                elements.extend(derived_elements)
                attributes.extend(derived_attributes)

        return ComplexType(
            name=name,
            elements=tuple(elements),
            attributes=tuple(attributes),
            base=base,
            derivation=derivation,
            simple_content=simple_content,
            abstract=_boolean(node.get("abstract")),
            doc=_documentation(node, XSD_NS),
        )

    def simple_type(self, node: etree._Element, name: str) -> SimpleType:
        doc = _documentation(node, XSD_NS)

        restriction = _child(node, XSD_NS, "restriction")
        if restriction is not None:
            base = self.qname(restriction, restriction.get("base"))
            inline = _child(restriction, XSD_NS, "simpleType")
            if base is None and inline is not None:
                base = self.simple_type(inline, "").base
            enumeration = tuple(child.get("value", "") for child in _children(restriction, XSD_NS, "enumeration"))
            return SimpleType(name=name, base=base, enumeration=enumeration, doc=doc)

        list_node = _child(node, XSD_NS, "list")
        if list_node is not None:
            item_type = self.qname(list_node, list_node.get("itemType"))
            inline = _child(list_node, XSD_NS, "simpleType")
            if item_type is None and inline is not None:
                item_type = self.simple_type(inline, "").base
            return SimpleType(name=name, item_type=item_type, doc=doc)

        union = _child(node, XSD_NS, "union")
        if union is not None:
            members = tuple(
                qname
                for qname in (self.qname(union, value) for value in union.get("memberTypes", "").split())
                if qname is not None
            )
            return SimpleType(name=name, member_types=members, doc=doc)

        return SimpleType(name=name, doc=doc)


class WSDLParser(_Parser):
    """Builds a `WSDL` from a `wsdl:definitions` element."""

    def parse(self, node: etree._Element) -> WSDL:
        schemas: list[XSDSchema] = []
        for types in _children(node, WSDL_NS, "types"):
            for schema in _children(types, XSD_NS, "schema"):
                schemas.append(SchemaParser(self.location, schema.get("targetNamespace", "")).parse(schema))

        return WSDL(
            name=node.get("name", ""),
            target_namespace=self.target_namespace,
            schemas=tuple(schemas),
            messages=tuple(self.message(child) for child in _children(node, WSDL_NS, "message")),
            port_types=tuple(self.port_type(child) for child in _children(node, WSDL_NS, "portType")),
            bindings=tuple(self.binding(child) for child in _children(node, WSDL_NS, "binding")),
            services=tuple(self.service(child) for child in _children(node, WSDL_NS, "service")),
            doc=_documentation(node, WSDL_NS),
        )

    def message(self, node: etree._Element) -> Message:
        parts = tuple(
            Part(
                name=child.get("name", ""),
                element=self.qname(child, child.get("element")),
                type=self.qname(child, child.get("type")),
            )
            for child in _children(node, WSDL_NS, "part")
        )
        return Message(name=node.get("name", ""), parts=parts)

    def _message_reference(self, node: etree._Element, tag: str) -> QName | None:
        child = _child(node, WSDL_NS, tag)
        if child is None:
            return None
        return self.qname(child, child.get("message"))

    def port_type(self, node: etree._Element) -> PortType:
        operations = tuple(
            Operation(
                name=child.get("name", ""),
                input=self._message_reference(child, "input"),
                output=self._message_reference(child, "output"),
                faults=tuple(
                    Fault(name=fault.get("name", ""), message=self.qname(fault, fault.get("message")))
                    for fault in _children(child, WSDL_NS, "fault")
                ),
                doc=_documentation(child, WSDL_NS),
            )
            for child in _children(node, WSDL_NS, "operation")
        )
        return PortType(name=node.get("name", ""), operations=operations, doc=_documentation(node, WSDL_NS))

    def binding(self, node: etree._Element) -> Binding:
        style = "document"
        transport = ""
        for namespace in SOAP_NAMESPACES:
            soap_binding = _child(node, namespace, "binding")
            if soap_binding is not None:
                style = soap_binding.get("style", style)
                transport = soap_binding.get("transport", "")
                break

        operations = []
        for child in _children(node, WSDL_NS, "operation"):
            soap_action = ""
            operation_style = ""
            for namespace in SOAP_NAMESPACES:
                soap_operation = _child(child, namespace, "operation")
                if soap_operation is not None:
                    soap_action = soap_operation.get("soapAction", "")
                    operation_style = soap_operation.get("style", "")
                    break
            operations.append(
                BindingOperation(name=child.get("name", ""), soap_action=soap_action, style=operation_style)
            )

        return Binding(
            name=node.get("name", ""),
            type=self.qname(node, node.get("type")),
            style=style,
            transport=transport,
            operations=tuple(operations),
        )

    def service(self, node: etree._Element) -> Service:
        ports = []
        for child in _children(node, WSDL_NS, "port"):
            address = ""
            for namespace in SOAP_NAMESPACES:
                soap_address = _child(child, namespace, "address")
                if soap_address is not None:
                    address = soap_address.get("location", "")
                    break
            binding = self.qname(child, child.get("binding"))
            ports.append(Port(name=child.get("name", ""), binding=binding, address=address))
        return Service(name=node.get("name", ""), ports=tuple(ports), doc=_documentation(node, WSDL_NS))


def parse_wsdl(data: bytes, location: str) -> WSDL:
    """Unmarshal a WSDL document.

    Args:
        data (bytes): The raw document.
        location (str): Where the document came from, for error messages.

    Returns:
        WSDL: The document model, holding only the schemas embedded in `wsdl:types`.
    """
    root = _load(data, location)
    if not _is(root, WSDL_NS, "definitions"):
        raise ParseError(location, f"expected a WSDL 1.1 'definitions' element, found '{root.tag}'")

    return WSDLParser(location, root.get("targetNamespace", "")).parse(root)


def parse_schema(data: bytes, location: str, chameleon_namespace: str = "") -> XSDSchema:
    """Unmarshal an XSD document.

    Args:
        data (bytes): The raw document.
        location (str): Where the document came from, for error messages.
        chameleon_namespace (str): Namespace adopted by a schema without a `targetNamespace`,
            i.e. the namespace of the schema that includes it.

    Returns:
        XSDSchema: The schema model.
    """
    root = _load(data, location)
    if not _is(root, XSD_NS, "schema"):
        raise ParseError(location, f"expected an XML Schema 'schema' element, found '{root.tag}'")

    return SchemaParser(location, root.get("targetNamespace") or chameleon_namespace).parse(root)
