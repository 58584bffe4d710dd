"""Data carried between the collection and emission steps of the writer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pywsdl.model import ComplexType, XSDSchema


@dataclass(frozen=True)
class ClassSpec:
    """A dataclass to generate for a complex type.

    The schema travels with the class, so every generation step knows the namespace
    of the declaration it works on without consulting shared state.

    Attributes:
        name: The Python class name.
        complex_type: The complex type that defines the class content.
        schema: The schema that declares the type.
        xml_name: Element name the class is serialized as.
        xml_namespace: Namespace of that element.
        base: Python name of the base class, if the type extends another complex type.
        doc: Documentation text for the class docstring.
    """

    name: str
    complex_type: ComplexType
    schema: XSDSchema
    xml_name: str
    xml_namespace: str
    base: str | None = None
    doc: str = ""


@dataclass(frozen=True)
class FieldSpec:
    """A generated dataclass field.

    Attributes:
        name: The Python field name.
        annotation: The field's type annotation.
        factory: Runtime helper building the field, e.g. 'element("price", xsd="float")'.
    """

    name: str
    annotation: str
    factory: str

    def declaration(self) -> str:
        return f"{self.name}: {self.annotation} = {self.factory}"


@dataclass(frozen=True)
class OperationSpec:
    """A port type operation, with everything client and server code need to call it.

    Attributes:
        name: The WSDL operation name.
        method_name: The Python method name.
        soap_action: The SOAP action of the operation's binding, possibly empty.
        request_type: Python type of the request payload, None if the input carries no part.
        response_type: Python type of the response payload, None if the output carries no part.
        request_element: Clark notation name of the request element, e.g. '{urn:stock}GetPrice'.
        response_element: Clark notation name of the response element.
        doc: Documentation text of the operation.
    """

    name: str
    method_name: str
    soap_action: str
    request_type: str | None
    response_type: str | None
    request_element: str = ""
    response_element: str = ""
    doc: str = ""
