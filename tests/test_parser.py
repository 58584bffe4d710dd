"""Tests for unmarshalling WSDL and XSD documents."""

from __future__ import annotations

import pytest

from conftest import STOCKQUOTE_WSDL
from pywsdl.errors import ParseError
from pywsdl.model import UNBOUNDED, XSD_NS, QName
from pywsdl.parser import parse_schema, parse_wsdl

STOCK = "urn:stock"


@pytest.fixture(scope="module")
def definitions():
    return parse_wsdl(STOCKQUOTE_WSDL.read_bytes(), str(STOCKQUOTE_WSDL))


class TestParseWSDL:
    def test_definitions(self, definitions):
        assert definitions.name == "StockQuote"
        assert definitions.target_namespace == STOCK
        assert definitions.doc == 'Stock quotes for "ticker" symbols.'
        assert len(definitions.schemas) == 1

    def test_messages(self, definitions):
        messages = {message.name: message for message in definitions.messages}
        assert messages["GetLastTradePriceInput"].parts[0].element == QName(STOCK, "GetLastTradePrice")
        assert messages["EmptyMessage"].parts == ()

    def test_port_type(self, definitions):
        port_type = definitions.port_types[0]
        assert port_type.name == "StockQuotePortType"
        assert [operation.name for operation in port_type.operations] == ["GetLastTradePrice", "Ping", "Heartbeat"]
        assert port_type.operations[0].input == QName(STOCK, "GetLastTradePriceInput")
        assert port_type.operations[0].doc == "Get the last trade price of a symbol."

    def test_binding(self, definitions):
        binding = definitions.bindings[0]
        assert binding.type == QName(STOCK, "StockQuotePortType")
        assert binding.style == "document"
        assert binding.operations[0].soap_action == "http://example.com/GetLastTradePrice"
        assert binding.operations[2].soap_action == ""

    def test_service(self, definitions):
        port = definitions.services[0].ports[0]
        assert port.name == "StockQuotePort"
        assert port.binding == QName(STOCK, "StockQuoteSoapBinding")
        assert port.address == "http://example.com/stockquote"


class TestParseSchema:
    """Unmarshalling of embedded and standalone XML schemas."""

    def test_types_and_elements(self, definitions):
        schema = definitions.schemas[0]
        assert schema.target_namespace == STOCK
        assert schema.element_form_default == "qualified"
        assert [t.name for t in schema.complex_types] == ["TradePriceRequest", "TradePrice"]
        assert [e.name for e in schema.elements] == [
            "GetLastTradePrice",
            "GetLastTradePriceResponse",
            "Ping",
            "PingResponse",
        ]

    def test_simple_type_enumeration(self, definitions):
        currency = definitions.schemas[0].simple_types[0]
        assert currency.base == QName(XSD_NS, "string")
        assert currency.enumeration == ("USD", "EUR", "in-kind")
        assert currency.doc == "ISO 4217 currency code."

    def test_element_occurrence(self, definitions):
        trade_price = definitions.schemas[0].complex_types[1]
        price, time, exchange = trade_price.elements
        assert not price.optional and not price.repeated
        assert time.optional
        assert exchange.max_occurs is UNBOUNDED and exchange.repeated
        assert trade_price.attributes[0].name == "string"

    def test_anonymous_complex_type(self, definitions):
        ping = definitions.schemas[0].elements[2]
        assert ping.type is None
        assert ping.complex_type is not None
        assert ping.complex_type.elements[0].name == "message"

    def test_choice_elements_are_optional(self):
        schema = parse_schema(
            b"""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" targetNamespace="urn:t">
                    <xs:complexType name="Payment">
                        <xs:choice>
                            <xs:element name="card" type="xs:string"/>
                            <xs:element name="iban" type="xs:string"/>
                        </xs:choice>
                    </xs:complexType>
                </xs:schema>""",
            "payment.xsd",
        )
        assert all(element.optional for element in schema.complex_types[0].elements)

    def test_extension(self):
        schema = parse_schema(
            b"""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" xmlns:t="urn:t" targetNamespace="urn:t">
                    <xs:complexType name="Money">
                        <xs:simpleContent>
                            <xs:extension base="xs:decimal">
                                <xs:attribute name="currency" type="xs:string" use="required"/>
                            </xs:extension>
                        </xs:simpleContent>
                    </xs:complexType>
                </xs:schema>""",
            "money.xsd",
        )
        money = schema.complex_types[0]
        assert money.simple_content
        assert money.derivation == "extension"
        assert money.base == QName(XSD_NS, "decimal")
        assert money.attributes[0].required

    def test_unprefixed_reference_uses_target_namespace(self):
        schema = parse_schema(
            b"""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" targetNamespace="urn:t">
                    <xs:element name="Order" type="OrderType"/>
                </xs:schema>""",
            "order.xsd",
        )
        assert schema.elements[0].type == QName("urn:t", "OrderType")

    def test_chameleon_namespace(self):
        schema = parse_schema(b'<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"/>', "common.xsd", "urn:host")
        assert schema.target_namespace == "urn:host"


class TestParseErrors:
    def test_malformed_document(self):
        with pytest.raises(ParseError, match="broken.wsdl"):
            parse_wsdl(b"<definitions", "broken.wsdl")

    def test_wrong_root_element(self):
        with pytest.raises(ParseError, match="definitions"):
            parse_wsdl(b'<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"/>', "schema.xsd")

    def test_schema_with_wrong_root_element(self):
        with pytest.raises(ParseError):
            parse_schema(b"<root/>", "root.xsd")
