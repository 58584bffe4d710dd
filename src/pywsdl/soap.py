"""Runtime support for generated SOAP clients and servers.

Generated types are dataclasses whose fields are declared with `element`, `attribute`
and `text`. `to_xml` and `from_xml` convert between such dataclasses and lxml elements,
`SOAPClient` sends document/literal SOAP 1.1 requests and `SOAPServer` dispatches them.
"""

from __future__ import annotations

import base64
import datetime
import enum
import logging
import re
import sys
import threading
import types
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, fields, is_dataclass
from decimal import Decimal
from typing import Any, Union, get_args, get_origin, get_type_hints

import requests
from dateutil.parser import isoparse, isoparser
from lxml import etree

from pywsdl.errors import PyWSDLError
from pywsdl.model import XSI_NS

logger = logging.getLogger(__name__)

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
TIMEOUT = 30

_METADATA_KEY = "pywsdl"
_TIMEZONE = re.compile(r"(Z|[+-]\d{2}:\d{2})$")

AnyType = Any
"""Values of `xs:anyType`: text for simple content, an lxml element otherwise."""


class AnyURI(str):
    """An `xs:anyURI` value."""


class NCName(str):
    """An `xs:NCName` value."""


class SOAPError(PyWSDLError):
    """Raised when a SOAP exchange fails outside of a SOAP fault."""

    pass


class SOAPFault(SOAPError):
    """A SOAP 1.1 fault, raised by clients and by server handlers.

    Attributes:
        code: The fault code, e.g. 'soap:Server'.
        string: The human-readable fault description.
        detail: Text of the fault detail, if any.
    """

    def __init__(self, code: str, string: str, detail: str = ""):
        super().__init__(f"{code}: {string}")
        self.code = code
        self.string = string
        self.detail = detail

    @classmethod
    def from_xml(cls, node: etree._Element) -> SOAPFault:
        detail = node.find("detail")
        return cls(
            code=node.findtext("faultcode", default="").strip(),
            string=node.findtext("faultstring", default="").strip(),
            detail="".join(detail.itertext()).strip() if detail is not None else "",
        )

    def to_xml(self) -> etree._Element:
        node = etree.Element(f"{{{SOAP_ENV_NS}}}Fault")
        etree.SubElement(node, "faultcode").text = self.code
        etree.SubElement(node, "faultstring").text = self.string
        if self.detail:
            etree.SubElement(node, "detail").text = self.detail
        return node


# ===== Field Declarations =====


@dataclass(frozen=True)
class XMLField:
    """How a dataclass field maps to XML.

    Attributes:
        kind: "element", "attribute" or "text".
        name: Local name of the element or attribute.
        namespace: Namespace of the element or attribute, empty if unqualified.
        xsd: Built-in XSD type the value is encoded as, if known.
        many: Whether the element repeats.
        nillable: Whether an absent value is sent as an `xsi:nil` element.
    """

    kind: str
    name: str = ""
    namespace: str = ""
    xsd: str = ""
    many: bool = False
    nillable: bool = False

    @property
    def tag(self) -> str:
        return _clark(self.namespace, self.name)


def element(name: str, namespace: str = "", xsd: str = "", many: bool = False, nillable: bool = False) -> Any:
    """Declare a field that maps to a child element."""
    metadata = {_METADATA_KEY: XMLField("element", name, namespace, xsd, many, nillable)}
    if many:
        return field(default_factory=list, metadata=metadata)
    return field(default=None, metadata=metadata)


def attribute(name: str, namespace: str = "", xsd: str = "") -> Any:
    """Declare a field that maps to an attribute."""
    return field(default=None, metadata={_METADATA_KEY: XMLField("attribute", name, namespace, xsd)})


def text(xsd: str = "") -> Any:
    """Declare a field that maps to the text content of a simple content type."""
    return field(default=None, metadata={_METADATA_KEY: XMLField("text", xsd=xsd)})


def _clark(namespace: str, name: str) -> str:
    return f"{{{namespace}}}{name}" if namespace else name


def _xml_fields(cls: type) -> Iterable[tuple[str, XMLField]]:
    for declared in fields(cls):
        xml_field = declared.metadata.get(_METADATA_KEY)
        if xml_field is not None:
            yield declared.name, xml_field


# ===== Type Resolution =====

_hints: dict[type, dict[str, Any]] = {}
_hints_lock = threading.Lock()


def _type_hints(cls: type) -> dict[str, Any]:
    """Resolve the annotations of a generated class.

    Annotations are evaluated in the namespace of the generated module only, since a
    field may share its name with the class it is annotated with.
    """
    with _hints_lock:
        hints = _hints.get(cls)
        if hints is None:
            namespace = dict(vars(sys.modules[cls.__module__]))
            hints = get_type_hints(cls, globalns=namespace, localns=namespace)
            _hints[cls] = hints
        return hints


def _unwrap(hint: Any) -> Any:
    """Strip `None` and `list` from an annotation, e.g. `list[Item] | None` becomes `Item`."""
    origin = get_origin(hint)
    if origin is Union or origin is types.UnionType:
        arguments = [argument for argument in get_args(hint) if argument is not type(None)]
        if len(arguments) != 1:
            return Any
        return _unwrap(arguments[0])

    if origin is list:
        arguments = get_args(hint)
        return _unwrap(arguments[0]) if arguments else Any

    return hint


# ===== Value Conversion =====


def encode_value(value: Any, xsd: str = "") -> str:
    """Convert a Python value to its XSD lexical form."""
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        if xsd.lower() == "hexbinary":
            return value.hex().upper()
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def decode_value(value: str, python_type: Any, xsd: str = "") -> Any:
    """Convert an XSD lexical value to the Python type of a field.

    Raises:
        SOAPError: If the value is not valid for the type.
    """
    try:
        if python_type is Any or not isinstance(python_type, type):
            return value
        if issubclass(python_type, enum.Enum):
            return python_type(value.strip())
        if python_type is bool:
            return value.strip() in ("true", "1")
        if python_type is int:
            return int(value.strip())
        if python_type is float:
            return float(value.strip())
        if python_type is Decimal:
            return Decimal(value.strip())
        if python_type is datetime.datetime:
            return isoparse(value.strip())
        if python_type is datetime.date:
            return isoparser().parse_isodate(_TIMEZONE.sub("", value.strip()))
        if python_type is datetime.time:
            return isoparser().parse_isotime(value.strip())
        if python_type is bytes:
            if xsd.lower() == "hexbinary":
                return bytes.fromhex(value.strip())
            return base64.b64decode(value.strip())
        if issubclass(python_type, str):
            return python_type(value)
    except (ValueError, ArithmeticError) as e:
        raise SOAPError(f"Invalid value '{value}' for type {python_type.__name__}: {e}") from e

    return value


# ===== XML Conversion =====


def _is_nil(node: etree._Element) -> bool:
    return node.get(f"{{{XSI_NS}}}nil") in ("true", "1")


def _fill(node: etree._Element, value: Any) -> None:
    for name, xml_field in _xml_fields(type(value)):
        item = getattr(value, name)

        if xml_field.kind == "attribute":
            if item is not None:
                node.set(xml_field.tag, encode_value(item, xml_field.xsd))
            continue

        if xml_field.kind == "text":
            if item is not None:
                node.text = encode_value(item, xml_field.xsd)
            continue

        items = (item or []) if xml_field.many else [item]
        for entry in items:
            if entry is None:
                if xml_field.nillable:
                    etree.SubElement(node, xml_field.tag).set(f"{{{XSI_NS}}}nil", "true")
                continue

            child = etree.SubElement(node, xml_field.tag)
            if is_dataclass(entry):
                _fill(child, entry)
            elif isinstance(entry, etree._Element):
                child.append(entry)
            else:
                child.text = encode_value(entry, xml_field.xsd)


def to_xml(value: Any, tag: str = "") -> etree._Element:
    """Serialize a generated dataclass, or a simple value, to an element.

    Args:
        value (Any): The value to serialize.
        tag (str): Clark notation name of the element. Defaults to the element name
            recorded on the value's class.

    Returns:
        etree._Element: The element.
    """
    if not tag:
        cls = type(value)
        if not hasattr(cls, "_xml_name"):
            raise SOAPError(f"No element name is known for values of type {cls.__name__}.")
        tag = _clark(cls._xml_namespace, cls._xml_name)

    node = etree.Element(tag)
    if is_dataclass(value):
        _fill(node, value)
    elif value is not None:
        node.text = encode_value(value)
    return node


def _decode_element(node: etree._Element, python_type: Any, xsd: str) -> Any:
    if _is_nil(node):
        return None
    if isinstance(python_type, type) and is_dataclass(python_type):
        return from_xml(python_type, node)
    if python_type is Any and len(node):
        return node
    return decode_value(node.text or "", python_type, xsd)


def from_xml(cls: type, node: etree._Element) -> Any:
    """Parse an element into a generated dataclass.

    Child elements are matched by local name. Unknown children and attributes are ignored.

    Args:
        cls (type): The dataclass to build.
        node (etree._Element): The element.

    Returns:
        Any: The parsed value.
    """
    if not is_dataclass(cls):
        return _decode_element(node, cls, "")

    hints = _type_hints(cls)
    children = [child for child in node if isinstance(child.tag, str)]
    values: dict[str, Any] = {}

    for name, xml_field in _xml_fields(cls):
        python_type = _unwrap(hints.get(name, Any))

        if xml_field.kind == "attribute":
            raw = node.get(xml_field.tag)
            if raw is not None:
                values[name] = decode_value(raw, python_type, xml_field.xsd)

        elif xml_field.kind == "text":
            if node.text is not None:
                values[name] = decode_value(node.text, python_type, xml_field.xsd)

        else:
            matches = [
                _decode_element(child, python_type, xml_field.xsd)
                for child in children
                if etree.QName(child).localname == xml_field.name
            ]
            if xml_field.many:
                values[name] = matches
            elif matches:
                values[name] = matches[0]

    return cls(**values)


def _parse(data: bytes) -> etree._Element:
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
    try:
        return etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise SOAPError(f"Invalid SOAP message: {e}") from e


def _body_payload(data: bytes) -> etree._Element | None:
    """The first element inside the SOAP body of an envelope."""
    root = _parse(data)
    body = root.find(f"{{{SOAP_ENV_NS}}}Body")
    if body is None:
        raise SOAPError("The SOAP message has no body.")
    for child in body:
        if isinstance(child.tag, str):
            return child
    return None


def envelope(payload: etree._Element | None) -> bytes:
    """Wrap a payload element in a SOAP 1.1 envelope."""
    root = etree.Element(f"{{{SOAP_ENV_NS}}}Envelope", nsmap={"soap": SOAP_ENV_NS})
    body = etree.SubElement(root, f"{{{SOAP_ENV_NS}}}Body")
    if payload is not None:
        body.append(payload)
    return etree.tostring(root, xml_declaration=True, encoding="utf-8")


# ===== Client =====


class SOAPClient:
    """Sends document/literal SOAP 1.1 requests to one endpoint."""

    def __init__(
        self,
        url: str,
        session: requests.Session | None = None,
        timeout: float = TIMEOUT,
        verify: bool = True,
        headers: dict[str, str] | None = None,
    ):
        """Initialize the client.

        Args:
            url (str): The endpoint address.
            session (requests.Session | None): Session used for requests, e.g. for authentication.
            timeout (float): Timeout of each request, in seconds.
            verify (bool): Verify TLS certificates.
            headers (dict[str, str] | None): Extra HTTP headers sent with each request.
        """
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify = verify
        self.headers = headers or {}

    def call(self, soap_action: str, request: Any, response_type: type | None, element: str = "") -> Any:
        """Send a request and parse the response.

        Args:
            soap_action (str): The SOAP action of the operation.
            request (Any): The request payload, None for operations without input.
            response_type (type | None): Type of the response payload, None for operations without output.
            element (str): Clark notation name of the request element, if it differs from the
                name recorded on the request's class.

        Returns:
            Any: The parsed response payload, or None.

        Raises:
            SOAPFault: If the server answered with a SOAP fault.
            SOAPError: On transport errors, HTTP errors and malformed responses.
        """
        data = envelope(to_xml(request, element) if request is not None else None)
        headers = {
            "Content-Type": 'text/xml; charset="utf-8"',
            "SOAPAction": f'"{soap_action}"',
            **self.headers,
        }

        logger.debug(f"Calling '{soap_action}' at '{self.url}'.")
        try:
            response = self.session.post(self.url, data=data, headers=headers, timeout=self.timeout, verify=self.verify)
        except requests.RequestException as e:
            raise SOAPError(f"Request to '{self.url}' failed: {e}") from e

        return self.parse_response(response.content, response.status_code, response_type)

    def parse_response(self, content: bytes, status_code: int, response_type: type | None) -> Any:
        if not content.strip():
            if status_code >= 400:
                raise SOAPError(f"Received response code {status_code}")
            return None

        payload = _body_payload(content)
        if payload is not None and payload.tag == f"{{{SOAP_ENV_NS}}}Fault":
            raise SOAPFault.from_xml(payload)

        if status_code >= 400:
            raise SOAPError(f"Received response code {status_code}")

        if response_type is None or payload is None:
            return None
        return from_xml(response_type, payload)


# ===== Server =====


@dataclass(frozen=True)
class Route:
    operation: str
    handler: Callable[..., Any]
    soap_action: str = ""
    element: str = ""
    request_type: type | None = None
    response_element: str = ""


class SOAPServer:
    """Dispatches SOAP 1.1 requests to registered operation handlers.

    Instances are WSGI applications: a GET request returns the WSDL document, a POST
    request is dispatched by its payload element, then by its SOAP action.
    """

    def __init__(self, wsdl: str):
        self.wsdl = wsdl
        self.routes: list[Route] = []

    def register(
        self,
        operation: str,
        handler: Callable[..., Any],
        soap_action: str = "",
        element: str = "",
        request_type: type | None = None,
        response_element: str = "",
    ) -> None:
        self.routes.append(Route(operation, handler, soap_action, element, request_type, response_element))

    def _route(self, payload: etree._Element | None, soap_action: str) -> Route:
        if payload is not None:
            for route in self.routes:
                if route.element and route.element == payload.tag:
                    return route

        if soap_action:
            for route in self.routes:
                if route.soap_action == soap_action:
                    return route

        if len(self.routes) == 1:
            return self.routes[0]

        raise SOAPFault("soap:Client", "No operation matches the request.")

    def handle(self, data: bytes, soap_action: str = "") -> tuple[int, bytes]:
        """Dispatch a request envelope.

        Handler errors other than `SOAPFault` and `NotImplementedError` propagate.

        Args:
            data (bytes): The request envelope.
            soap_action (str): Value of the SOAPAction header, quoted or not.

        Returns:
            tuple[int, bytes]: HTTP status code and response envelope.
        """
        try:
            try:
                payload = _body_payload(data)
            except SOAPError as e:
                raise SOAPFault("soap:Client", str(e)) from e

            route = self._route(payload, soap_action.strip().strip('"'))
            logger.debug(f"Dispatching operation '{route.operation}'.")

            if route.request_type is None:
                result = route.handler()
            elif payload is None:
                raise SOAPFault("soap:Client", f"Operation '{route.operation}' requires a request.")
            else:
                try:
                    request = from_xml(route.request_type, payload)
                except SOAPError as e:
                    raise SOAPFault("soap:Client", str(e)) from e
                result = route.handler(request)

        except SOAPFault as fault:
            return 500, envelope(fault.to_xml())
        except NotImplementedError as e:
            fault = SOAPFault("soap:Server", f"Operation '{e}' is not implemented.")
            return 500, envelope(fault.to_xml())

        return 200, envelope(to_xml(result, route.response_element) if result is not None else None)

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]) -> list[bytes]:
        method = environ.get("REQUEST_METHOD", "GET")

        if method == "GET":
            status, body = 200, self.wsdl.encode("utf-8")
        elif method == "POST":
            length = int(environ.get("CONTENT_LENGTH") or 0)
            data = environ["wsgi.input"].read(length)
            try:
                status, body = self.handle(data, environ.get("HTTP_SOAPACTION", ""))
            except Exception:
                logger.exception("Handling a SOAP request failed.")
                status, body = 500, envelope(SOAPFault("soap:Server", "Internal server error.").to_xml())
        else:
            start_response("405 Method Not Allowed", [("Allow", "GET, POST")])
            return [b""]

        reason = "OK" if status == 200 else "Internal Server Error"
        start_response(
            f"{status} {reason}",
            [("Content-Type", 'text/xml; charset="utf-8"'), ("Content-Length", str(len(body)))],
        )
        return [body]
