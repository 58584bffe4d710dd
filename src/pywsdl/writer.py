"""Generate Python client and server code from a resolved WSDL document.

Every `gen_*` method only reads the document and the indexes built on construction,
so the methods may run concurrently on one `Writer`.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from pywsdl import helper
from pywsdl.model import WSDL, Attribute, Binding, ComplexType, Element, PortType, QName, SimpleType, XSDSchema
from pywsdl.writer_dto import ClassSpec, FieldSpec, OperationSpec
from pywsdl.xsd_types import HELPER_TYPES, XSD_TYPE_TO_PYTHON

if TYPE_CHECKING:
    from pywsdl.collisions import Traverser

logger = logging.getLogger(__name__)

RUNTIME_MODULE = "pywsdl.soap"
RUNTIME_IMPORTS = (*HELPER_TYPES, "SOAPClient", "attribute", "element", "text")

# Deepest chain of simple type restrictions that is followed to a built-in type.
MAX_RESTRICTION_DEPTH = 32


def _unique(name: str, taken: set[str]) -> str:
    while name in taken:
        name = f"{name}_"
    taken.add(name)
    return name


class Writer:
    """Writes the source artifacts for one WSDL document."""

    def __init__(
        self,
        definitions: WSDL,
        traverser: Traverser,
        package: str,
        module_name: str = "",
        source: str = "",
        raw_wsdl: bytes = b"",
        make_public_fn: helper.MakePublicFn = helper.make_public,
    ):
        """Initialize the writer.

        Args:
            definitions (WSDL): The document, with all externals resolved and all collisions renamed.
            traverser (Traverser): The traverser that renamed the document, used for element lookups.
            package (str): The package the generated code lives in.
            module_name (str): Module name of the client file, imported by the server file.
            source (str): The location the document was read from.
            raw_wsdl (bytes): The document text, embedded verbatim in the server file.
            make_public_fn (MakePublicFn): Casing applied to generated type names.
        """
        self.definitions = definitions
        self.traverser = traverser
        self.package = package
        self.module_name = module_name or package
        self.source = source
        self.raw_wsdl = raw_wsdl
        self.make_public_fn = make_public_fn

        self._complex_types: dict[QName, tuple[XSDSchema, ComplexType]] = {}
        self._simple_types: dict[QName, tuple[XSDSchema, SimpleType]] = {}
        self._elements: dict[QName, tuple[XSDSchema, Element]] = {}
        for schema in definitions.schemas:
            namespace = schema.target_namespace
            for complex_type in schema.complex_types:
                self._complex_types.setdefault(QName(namespace, complex_type.name), (schema, complex_type))
            for simple_type in schema.simple_types:
                self._simple_types.setdefault(QName(namespace, simple_type.name), (schema, simple_type))
            for element in schema.elements:
                self._elements.setdefault(QName(namespace, element.name), (schema, element))

        # Generated names of declared types, by schema local name.
        self._type_names: dict[str, str] = {}
        for _, simple_type in self._simple_types.values():
            self._type_names.setdefault(simple_type.name, self.class_name(simple_type.name))
        for _, complex_type in self._complex_types.values():
            self._type_names.setdefault(complex_type.name, self.class_name(complex_type.name))

        self._taken: set[str] = set(self._type_names.values())
        self._element_classes: dict[QName, str] = {}
        self._nested_classes: dict[tuple[str, str], str] = {}
        self._classes = self._collect_classes()

        self._port_type_names: dict[str, str] = {}
        taken = set(self._taken)
        for port_type in definitions.port_types:
            name = self.class_name(port_type.name)
            if name in taken:
                name = f"{name}Client"
            self._port_type_names[port_type.name] = _unique(name, taken)

    # ===== Lookups =====

    def find_type(self, message: str) -> str:
        """Find the type name carried by a message.

        Only the first part of a message is considered. A part that declares a type
        yields that type, a part that references an element yields the element's type,
        or the element's own name if it has an anonymous type.

        Args:
            message (str): The message name, with or without a namespace prefix.

        Returns:
            str: The type name, or an empty string if it cannot be determined.
        """
        message = helper.stripns(message)
        for candidate in self.definitions.messages:
            if candidate.name != message:
                continue

            if not candidate.parts:
                logger.warning(
                    f"Message '{candidate.name}' has no parts, "
                    "which is not supported by the document/literal binding style."
                )
                continue

            part = candidate.parts[0]
            if part.type is not None:
                return part.type.name

            if part.element is None:
                continue

            for schema in self.definitions.schemas:
                for element in schema.elements:
                    if part.element.name.lower() == element.name.lower():
                        if element.type is not None:
                            return element.type.name
                        return element.name

        return ""

    def find_soap_action(self, operation: str, port_type: str) -> str:
        """Find the SOAP action of an operation in the binding of a port type.

        Args:
            operation (str): The operation name.
            port_type (str): The port type name.

        Returns:
            str: The SOAP action, or an empty string if no binding declares one.
        """
        for binding in self.definitions.bindings:
            if binding.type is None or binding.type.name.upper() != port_type.upper():
                continue
            for binding_operation in binding.operations:
                if binding_operation.name == operation:
                    return binding_operation.soap_action
        return ""

    def find_service_address(self, port_name: str) -> str:
        """Find the endpoint address of a service port.

        Args:
            port_name (str): The port name.

        Returns:
            str: The address, or an empty string if no service declares the port.
        """
        for service in self.definitions.services:
            for port in service.ports:
                if port.name == port_name:
                    return port.address
        return ""

    def find_name_by_type(self, name: str) -> str:
        return self.traverser.find_name_by_type(name)

    def _find_binding(self, name: str) -> Binding | None:
        for binding in self.definitions.bindings:
            if binding.name == name:
                return binding
        return None

    def _find_port_type(self, name: str) -> PortType | None:
        for port_type in self.definitions.port_types:
            if port_type.name == name:
                return port_type
        return None

    @staticmethod
    def _find(index: dict[QName, tuple[XSDSchema, Any]], qname: QName) -> tuple[XSDSchema, Any] | None:
        found = index.get(qname)
        if found is not None or qname.is_xsd:
            return found

        # References into schemas that were never resolved still match by local name.
        for declared, value in index.items():
            if declared.name == qname.name:
                return value
        return None

    # ===== Type Mapping =====

    def class_name(self, name: str) -> str:
        """The Python name generated for a schema type or element name."""
        return helper.replace_reserved_words(self.make_public_fn(name))

    def python_type(self, ref: QName | None, nillable: bool) -> str:
        """The annotation for a value of the referenced type.

        Declared simple types map to their generated alias or enum, declared complex
        types to their (always optional) class and built-in types to Python types.
        References that cannot be resolved map to `AnyType`.

        Args:
            ref (QName | None): The type reference, None for `xs:anyType`.
            nillable (bool): Whether the value may be absent.

        Returns:
            str: The annotation.
        """
        if ref is None:
            return helper.optional("AnyType") if nillable else "AnyType"

        simple = self._find(self._simple_types, ref)
        if simple is not None:
            python_type = self.class_name(simple[1].name)
            return helper.optional(python_type) if nillable else python_type

        complex_ = self._find(self._complex_types, ref)
        if complex_ is not None:
            return helper.optional(self.class_name(complex_[1].name))

        if ref.name.lower() in XSD_TYPE_TO_PYTHON:
            return helper.to_python_type(ref.name, nillable, self.make_public_fn)

        if ref.is_xsd:
            logger.debug(f"Unsupported built-in type '{ref.name}' is mapped to str.")
            return helper.optional("str") if nillable else "str"

        logger.warning(f"Type '{ref}' could not be resolved and is mapped to AnyType.")
        return helper.optional("AnyType") if nillable else "AnyType"

    def python_type_by_name(self, name: str) -> str:
        """The annotation for a type or element known only by its local name."""
        if name in self._type_names:
            return self._type_names[name]

        for qname, class_name in self._element_classes.items():
            if qname.name == name:
                return class_name

        if name.lower() in XSD_TYPE_TO_PYTHON:
            return helper.to_python_type(name, False, self.make_public_fn)

        return "AnyType"

    def xsd_name(self, ref: QName | None, depth: int = 0) -> str:
        """The built-in XSD type a value of the referenced type is encoded as.

        Returns an empty string for complex types and for types the runtime does not convert.
        """
        if ref is None or depth > MAX_RESTRICTION_DEPTH:
            return ""

        simple = self._find(self._simple_types, ref)
        if simple is not None:
            simple_type = simple[1]
            if simple_type.base is not None:
                return self.xsd_name(simple_type.base, depth + 1)
            return "string"

        if self._find(self._complex_types, ref) is not None:
            return ""

        return ref.name if ref.name.lower() in XSD_TYPE_TO_PYTHON else ""

    def simple_type_target(self, simple_type: SimpleType, depth: int = 0) -> str:
        """The Python type a simple type is an alias of, ignoring its own enumeration.

        Restriction chains are followed to the first enumeration or built-in type,
        lists and unions are carried as text.
        """
        if simple_type.base is None or simple_type.item_type or simple_type.member_types:
            return "str"
        if depth > MAX_RESTRICTION_DEPTH:
            return "str"

        base = self._find(self._simple_types, simple_type.base)
        if base is not None:
            if base[1].enumeration:
                return self.class_name(base[1].name)
            return self.simple_type_target(base[1], depth + 1)

        if self._find(self._complex_types, simple_type.base) is not None:
            return "str"

        return helper.remove_optional(self.python_type(simple_type.base, False))

    def _text_type(self, complex_type: ComplexType, depth: int = 0) -> tuple[str, str]:
        """The Python type and XSD name of the text content of a simple content type."""
        if complex_type.base is None or depth > MAX_RESTRICTION_DEPTH:
            return "str", "string"

        base = self._find(self._complex_types, complex_type.base)
        if base is not None:
            return self._text_type(base[1], depth + 1)

        return helper.remove_optional(self.python_type(complex_type.base, False)), self.xsd_name(complex_type.base)

    # ===== Class Collection =====

    def _collect_classes(self) -> list[ClassSpec]:
        specs: list[ClassSpec] = []
        schemas = self.definitions.schemas

        for schema in schemas:
            for complex_type in schema.complex_types:
                name = self._type_names[complex_type.name]
                if any(spec.name == name for spec in specs):
                    logger.debug(f"Complex type '{complex_type.name}' is declared more than once.")
                    continue
                xml_name = self.find_name_by_type(complex_type.name) or complex_type.name
                self._add_class(specs, schema, complex_type, name, xml_name, schema.target_namespace, complex_type.doc)

        for schema in schemas:
            for element in schema.elements:
                if element.complex_type is None:
                    continue
                name = self.class_name(element.name)
                if name in self._taken:
                    logger.warning(
                        f"Element '{element.name}' in namespace '{schema.target_namespace}' "
                        "clashes with a type of the same name and is skipped."
                    )
                    continue
                self._taken.add(name)
                self._element_classes[QName(schema.target_namespace, element.name)] = name
                self._add_class(
                    specs,
                    schema,
                    element.complex_type,
                    name,
                    element.name,
                    schema.target_namespace,
                    element.doc or element.complex_type.doc,
                )

        return specs

    def _add_class(
        self,
        specs: list[ClassSpec],
        schema: XSDSchema,
        complex_type: ComplexType,
        name: str,
        xml_name: str,
        xml_namespace: str,
        doc: str = "",
    ) -> None:
        specs.append(
            ClassSpec(
                name=name,
                complex_type=complex_type,
                schema=schema,
                xml_name=xml_name,
                xml_namespace=xml_namespace,
                base=self._base_class(complex_type),
                doc=doc,
            )
        )

        for element in complex_type.elements:
            if element.complex_type is None or element.ref is not None:
                continue
            nested = _unique(name + self.class_name(element.name), self._taken)
            self._nested_classes[(name, element.name)] = nested
            self._add_class(
                specs,
                schema,
                element.complex_type,
                nested,
                element.name,
                schema.element_namespace(element),
                element.doc or element.complex_type.doc,
            )

    def _base_class(self, complex_type: ComplexType) -> str | None:
        if complex_type.base is None or complex_type.derivation != "extension":
            return None
        base = self._find(self._complex_types, complex_type.base)
        if base is None:
            return None
        return self._type_names[base[1].name]

    def _ordered_classes(self) -> list[ClassSpec]:
        """Classes in declaration order, except that every base class precedes its subclasses."""
        by_name = {spec.name: spec for spec in self._classes}
        ordered: list[ClassSpec] = []
        visited: set[str] = set()

        def visit(spec: ClassSpec) -> None:
            if spec.name in visited:
                return
            visited.add(spec.name)
            if spec.base is not None and spec.base in by_name:
                visit(by_name[spec.base])
            ordered.append(spec)

        for spec in self._classes:
            visit(spec)
        return ordered

    # ===== Field Generation =====

    def _element_field(self, spec: ClassSpec, element: Element) -> FieldSpec | None:
        schema = spec.schema
        target = element
        namespace = schema.element_namespace(element)
        python_type = ""
        xsd = ""

        if element.ref is not None:
            found = self._find(self._elements, element.ref)
            if found is None:
                logger.warning(f"Element reference '{element.ref}' could not be resolved.")
                target = Element(name=element.ref.name)
                namespace = element.ref.namespace
            else:
                target_schema, target = found
                namespace = target_schema.target_namespace
                if target.complex_type is not None:
                    python_type = self._element_classes.get(
                        QName(target_schema.target_namespace, target.name), "AnyType"
                    )

        if not target.name:
            return None

        if not python_type:
            if target.complex_type is not None:
                python_type = self._nested_classes[(spec.name, element.name)]
            elif target.simple_type is not None:
                python_type = self.simple_type_target(target.simple_type)
                xsd = self.xsd_name(target.simple_type.base)
            elif target.type is not None:
                python_type = helper.remove_optional(self.python_type(target.type, False))
                xsd = self.xsd_name(target.type)
            else:
                python_type = "AnyType"

        nillable = element.nillable or target.nillable
        is_class = target.complex_type is not None or (
            target.type is not None and self._find(self._complex_types, target.type) is not None
        )

        if element.repeated:
            annotation = f"list[{python_type}]"
        elif nillable or element.optional or is_class:
            annotation = helper.optional(python_type)
        else:
            annotation = python_type

        parameters = [helper.python_string(target.name)]
        if namespace:
            parameters.append(f"namespace={helper.python_string(namespace)}")
        if xsd:
            parameters.append(f"xsd={helper.python_string(xsd)}")
        if element.repeated:
            parameters.append("many=True")
        if nillable:
            parameters.append("nillable=True")

        return FieldSpec(
            name=helper.replace_reserved_words(target.name),
            annotation=annotation,
            factory=helper.new_call("element", parameters),
        )

    def _attribute_field(self, schema: XSDSchema, attribute: Attribute) -> FieldSpec | None:
        if not attribute.name:
            return None

        if attribute.simple_type is not None:
            python_type = self.simple_type_target(attribute.simple_type)
            xsd = self.xsd_name(attribute.simple_type.base)
        elif attribute.type is not None:
            python_type = helper.remove_optional(self.python_type(attribute.type, False))
            xsd = self.xsd_name(attribute.type)
        else:
            python_type = "str"
            xsd = "string"

        if attribute.ref is not None:
            namespace = attribute.ref.namespace
        elif schema.attribute_form_default == "qualified":
            namespace = schema.target_namespace
        else:
            namespace = ""

        parameters = [helper.python_string(attribute.name)]
        if namespace:
            parameters.append(f"namespace={helper.python_string(namespace)}")
        if xsd:
            parameters.append(f"xsd={helper.python_string(xsd)}")

        return FieldSpec(
            name=helper.replace_attr_reserved_words(attribute.name),
            annotation=python_type if attribute.required else helper.optional(python_type),
            factory=helper.new_call("attribute", parameters),
        )

    def _fields(self, spec: ClassSpec) -> list[FieldSpec]:
        complex_type = spec.complex_type
        candidates: list[FieldSpec | None] = []

        if complex_type.simple_content and spec.base is None:
            python_type, xsd = self._text_type(complex_type)
            parameters = [f"xsd={helper.python_string(xsd)}"] if xsd else []
            candidates.append(FieldSpec("value", helper.optional(python_type), helper.new_call("text", parameters)))

        candidates.extend(self._element_field(spec, element) for element in complex_type.elements)
        candidates.extend(self._attribute_field(spec.schema, attribute) for attribute in complex_type.attributes)

        fields = []
        used: set[str] = set()
        for candidate in candidates:
            if candidate is None or not candidate.name:
                continue
            fields.append(replace(candidate, name=_unique(candidate.name, used)))
        return fields

    # ===== Type Generation =====

    def _gen_enum(self, name: str, simple_type: SimpleType) -> list[str]:
        lines = [helper.new_class_declaration(name, ["str", "Enum"])]
        lines.extend(helper.new_docstring(simple_type.doc, helper.INDENT))
        if simple_type.doc.strip():
            lines.append("")

        members: set[str] = set()
        for value in simple_type.enumeration:
            member = helper.replace_reserved_words(helper.make_public(helper.normalize(value)))
            member = _unique(member, members)
            lines.append(f"{helper.INDENT}{member} = {helper.python_string(value)}")

        return lines

    def _gen_class(self, spec: ClassSpec) -> list[str]:
        lines = [
            helper.new_decorator("dataclass"),
            helper.new_class_declaration(spec.name, [spec.base] if spec.base else None),
        ]

        docstring = helper.new_docstring(spec.doc, helper.INDENT)
        if docstring:
            lines.extend(docstring)
            lines.append("")

        lines.append(f"{helper.INDENT}_xml_name = {helper.python_string(spec.xml_name)}")
        lines.append(f"{helper.INDENT}_xml_namespace = {helper.python_string(spec.xml_namespace)}")

        fields = self._fields(spec)
        if fields:
            lines.append("")
            lines.extend(f"{helper.INDENT}{field.declaration()}" for field in fields)

        return lines

    def gen_types(self) -> str:
        """Generate the type declarations of all schemas.

        Enumerations come first, then aliases of simple types, then the dataclasses of
        complex types and anonymous element types, then aliases of top-level elements.
        Each declaration is generated with the namespace of the schema that declares it.

        Returns:
            str: The generated source.
        """
        enums: list[list[str]] = []
        aliases: list[str] = []
        emitted: set[str] = set()

        for schema in self.definitions.schemas:
            for simple_type in schema.simple_types:
                name = self._type_names[simple_type.name]
                if name in emitted:
                    continue
                emitted.add(name)
                if simple_type.enumeration:
                    enums.append(self._gen_enum(name, simple_type))
                else:
                    aliases.append(f"{name} = {self.simple_type_target(simple_type)}")

        classes = [self._gen_class(spec) for spec in self._ordered_classes()]

        element_aliases: list[list[str]] = []
        taken = set(self._taken)
        for schema in self.definitions.schemas:
            for element in schema.elements:
                if element.complex_type is not None:
                    continue
                name = self.class_name(element.name)

                if element.simple_type is not None:
                    if name in taken:
                        logger.warning(f"Element '{element.name}' clashes with a type of the same name and is skipped.")
                        continue
                    taken.add(name)
                    simple_type = replace(element.simple_type, name=element.name)
                    if simple_type.enumeration:
                        element_aliases.append(self._gen_enum(name, simple_type))
                    else:
                        element_aliases.append([f"{name} = {self.simple_type_target(simple_type)}"])
                    continue

                target = helper.remove_optional(self.python_type(element.type, False))
                if target == name:
                    continue
                if name in taken:
                    logger.warning(
                        f"Element '{element.name}' in namespace '{schema.target_namespace}' "
                        "clashes with a type of the same name and is skipped."
                    )
                    continue
                taken.add(name)
                element_aliases.append([f"{name} = {target}"])

        lines: list[str] = []
        for block in [*enums, aliases, *classes, *element_aliases]:
            if not block:
                continue
            lines.extend(["", ""])
            lines.extend(block)

        return "\n".join(lines) + "\n"

    # ===== Operation Generation =====

    def port_type_class_name(self, port_type: str) -> str:
        return self._port_type_names.get(port_type) or self.class_name(port_type)

    def _message_element(self, message: QName | None) -> str:
        """Clark notation of the element carried by a message, if its first part references one."""
        if message is None:
            return ""
        for candidate in self.definitions.messages:
            if candidate.name != message.name or not candidate.parts:
                continue
            part = candidate.parts[0]
            if part.element is None:
                return ""
            found = self._find(self._elements, part.element)
            if found is None:
                return str(part.element)
            return str(QName(found[0].target_namespace, found[1].name))
        return ""

    def _message_type(self, message: QName | None) -> str | None:
        if message is None:
            return None
        type_name = self.find_type(message.name)
        if not type_name:
            return None
        return self.python_type_by_name(type_name)

    def operation_specs(self, port_type: PortType) -> list[OperationSpec]:
        specs = []
        used: set[str] = set()
        for operation in port_type.operations:
            specs.append(
                OperationSpec(
                    name=operation.name,
                    method_name=_unique(helper.replace_reserved_words(operation.name), used),
                    soap_action=self.find_soap_action(operation.name, port_type.name),
                    request_type=self._message_type(operation.input),
                    response_type=self._message_type(operation.output),
                    request_element=self._message_element(operation.input),
                    response_element=self._message_element(operation.output),
                    doc=operation.doc,
                )
            )
        return specs

    def _gen_client_method(self, operation: OperationSpec) -> list[str]:
        parameters = ["self"]
        if operation.request_type is not None:
            parameters.append(f"request: {operation.request_type}")

        return_type = helper.optional(operation.response_type) if operation.response_type else "None"
        lines = [helper.new_function(operation.method_name, parameters, return_type)]
        lines.extend(helper.new_docstring(operation.doc, helper.INDENT))

        arguments = [
            helper.python_string(operation.soap_action),
            "request" if operation.request_type is not None else "None",
            operation.response_type or "None",
        ]
        if operation.request_element:
            arguments.append(f"element={helper.python_string(operation.request_element)}")
        lines.append(f"{helper.INDENT}return self._client.call({helper.join_parameters(arguments)})")
        return lines

    def gen_operations(self) -> str:
        """Generate one client class per port type, with one method per operation.

        Returns:
            str: The generated source.
        """
        lines: list[str] = []
        for port_type in self.definitions.port_types:
            name = self.port_type_class_name(port_type.name)

            lines.extend(["", ""])
            lines.append(helper.new_class_declaration(name))
            doc = port_type.doc or f"Client for the {port_type.name} port type."
            docstring = helper.new_docstring(doc, helper.INDENT)
            lines.extend(docstring)
            lines.append("")
            lines.append(helper.INDENT + helper.new_function("__init__", ["self", "client: SOAPClient"]))
            lines.append(f"{helper.INDENT * 2}self._client = client")

            for operation in self.operation_specs(port_type):
                lines.append("")
                lines.extend(helper.indent_lines(self._gen_client_method(operation)))

        return "\n".join(lines) + "\n"

    # ===== SOAP Binding Generation =====

    def gen_soap(self) -> str:
        """Generate a factory function per service port, bound to the port's address.

        Returns:
            str: The generated source.
        """
        lines: list[str] = []
        used: set[str] = set()
        for service in self.definitions.services:
            for port in service.ports:
                binding = self._find_binding(port.binding.name) if port.binding else None
                if binding is None or binding.type is None:
                    logger.debug(f"Port '{port.name}' has no known binding, skipping.")
                    continue
                port_type = self._find_port_type(binding.type.name)
                if port_type is None:
                    logger.debug(f"Binding '{binding.name}' references an unknown port type, skipping.")
                    continue

                class_name = self.port_type_class_name(port_type.name)
                address = self.find_service_address(port.name)
                function_name = _unique(f"new_{helper.make_private(helper.normalize(port.name))}", used)

                lines.extend(["", ""])
                lines.append(
                    helper.new_function(
                        function_name,
                        [f"url: str = {helper.python_string(address)}", "**kwargs: Any"],
                        class_name,
                    )
                )
                lines.extend(
                    helper.new_docstring(
                        f"Create a {class_name} client for port {port.name} of service {service.name}.",
                        helper.INDENT,
                    )
                )
                lines.append(f"{helper.INDENT}return {class_name}(SOAPClient(url, **kwargs))")

        return "\n".join(lines) + "\n"

    # ===== Header Generation =====

    def gen_header(self) -> str:
        """Generate the docstring and imports of the client file."""
        source = helper.python_string(self.source)[1:-1]
        lines = [
            f'"""Code generated by pywsdl from {source}. DO NOT EDIT.',
            "",
            f"Package: {self.package}",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            "import datetime",
            "from dataclasses import dataclass",
            "from decimal import Decimal",
            "from enum import Enum",
            "from typing import Any",
            "",
            f"from {RUNTIME_MODULE} import {helper.join_parameters(RUNTIME_IMPORTS)}",
        ]
        return "\n".join(lines) + "\n"

    def gen_server_header(self) -> str:
        """Generate the docstring and imports of the server file."""
        source = helper.python_string(self.source)[1:-1]
        lines = [
            f'"""Server skeleton generated by pywsdl from {source}. DO NOT EDIT.',
            "",
            f"Package: {self.package}",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            f"from {RUNTIME_MODULE} import SOAPServer",
            "",
            f"from .{self.module_name} import *  # noqa: F403",
        ]
        return "\n".join(lines) + "\n"

    # ===== Server Generation =====

    def gen_server_wsdl(self) -> str:
        """Embed the original document text in a `WSDL` constant.

        The literal is escaped so that the constant equals the document text.
        """
        text = self.raw_wsdl.decode("utf-8", errors="replace")
        escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\r", "\\r")
        return f'\n\nWSDL = """{escaped}"""\n'

    def gen_server(self) -> str:
        """Generate a handler base class and a dispatching server per port type.

        Returns:
            str: The generated source.
        """
        lines: list[str] = []
        for port_type in self.definitions.port_types:
            name = self.port_type_class_name(port_type.name)
            service_name = f"{name}Service"
            server_name = f"{name}Server"
            operations = self.operation_specs(port_type)

            lines.extend(["", ""])
            lines.append(helper.new_class_declaration(service_name))
            lines.extend(
                helper.new_docstring(
                    f"Handlers for the operations of {port_type.name}.\n\n"
                    "Subclass and override the operations the service implements.",
                    helper.INDENT,
                )
            )
            for operation in operations:
                parameters = ["self"]
                if operation.request_type is not None:
                    parameters.append(f"request: {operation.request_type}")
                return_type = helper.optional(operation.response_type) if operation.response_type else "None"

                lines.append("")
                lines.append(helper.INDENT + helper.new_function(operation.method_name, parameters, return_type))
                lines.extend(helper.new_docstring(operation.doc, helper.INDENT * 2))
                lines.append(f"{helper.INDENT * 2}raise NotImplementedError({helper.python_string(operation.name)})")

            lines.extend(["", ""])
            lines.append(helper.new_class_declaration(server_name, ["SOAPServer"]))
            lines.extend(helper.new_docstring(f"Dispatches SOAP requests to a {service_name}.", helper.INDENT))
            lines.append("")
            lines.append(helper.INDENT + helper.new_function("__init__", ["self", f"service: {service_name}"]))
            lines.append(f"{helper.INDENT * 2}super().__init__(WSDL)")
            for operation in operations:
                arguments = [helper.python_string(operation.name), f"service.{operation.method_name}"]
                if operation.soap_action:
                    arguments.append(f"soap_action={helper.python_string(operation.soap_action)}")
                if operation.request_element:
                    arguments.append(f"element={helper.python_string(operation.request_element)}")
                if operation.response_element:
                    arguments.append(f"response_element={helper.python_string(operation.response_element)}")
                if operation.request_type is not None:
                    arguments.append(f"request_type={operation.request_type}")
                lines.append(f"{helper.INDENT * 2}self.register({helper.join_parameters(arguments)})")

        return "\n".join(lines) + "\n"
