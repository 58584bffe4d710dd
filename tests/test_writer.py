"""Tests for the lookups and code generators of the writer."""

from __future__ import annotations

import logging

import pytest

from conftest import COLLISIONS_WSDL, STOCKQUOTE_WSDL
from pywsdl.collisions import Traverser
from pywsdl.generator import Generator
from pywsdl.model import (
    WSDL,
    XSD_NS,
    Binding,
    BindingOperation,
    ComplexType,
    Element,
    PortType,
    QName,
    SimpleType,
    XSDSchema,
)
from pywsdl.writer import Writer

STOCK = "urn:stock"


def writer_for(schema: XSDSchema, **kwargs) -> Writer:
    definitions = WSDL(schemas=(schema,), **kwargs)
    return Writer(definitions, Traverser(definitions.schemas), package="test")


class TestLookups:
    """Message, binding and service lookups."""

    def test_find_type_of_typed_element(self, stockquote_writer):
        assert stockquote_writer.find_type("GetLastTradePriceInput") == "TradePriceRequest"
        assert stockquote_writer.find_type("tns:GetLastTradePriceOutput") == "TradePrice"

    def test_find_type_of_anonymous_element(self, stockquote_writer):
        assert stockquote_writer.find_type("PingInput") == "Ping"

    def test_find_type_of_message_without_parts(self, stockquote_writer, caplog):
        with caplog.at_level(logging.WARNING):
            assert stockquote_writer.find_type("EmptyMessage") == ""
        assert "EmptyMessage" in caplog.text

    def test_find_type_of_unknown_message(self, stockquote_writer):
        assert stockquote_writer.find_type("Missing") == ""

    def test_find_soap_action(self, stockquote_writer):
        assert stockquote_writer.find_soap_action("Ping", "StockQuotePortType") == "urn:stock#Ping"
        assert stockquote_writer.find_soap_action("Heartbeat", "StockQuotePortType") == ""

    def test_find_soap_action_ignores_port_type_case(self, stockquote_writer):
        assert (
            stockquote_writer.find_soap_action("GetLastTradePrice", "stockquoteporttype")
            == "http://example.com/GetLastTradePrice"
        )

    def test_find_soap_action_of_unknown_operation(self, stockquote_writer):
        assert stockquote_writer.find_soap_action("getlasttradeprice", "StockQuotePortType") == ""
        assert stockquote_writer.find_soap_action("Ping", "OtherPortType") == ""

    def test_find_service_address(self, stockquote_writer):
        assert stockquote_writer.find_service_address("StockQuotePort") == "http://example.com/stockquote"
        assert stockquote_writer.find_service_address("OtherPort") == ""

    def test_find_name_by_type(self, stockquote_writer):
        assert stockquote_writer.find_name_by_type("TradePrice") == "GetLastTradePriceResponse"
        assert stockquote_writer.find_name_by_type("Currency") == ""

    def test_first_matching_binding_wins(self):
        definitions = WSDL(
            bindings=(
                Binding("A", type=QName(STOCK, "Quotes"), operations=(BindingOperation("Get", "urn:a"),)),
                Binding("B", type=QName(STOCK, "Quotes"), operations=(BindingOperation("Get", "urn:b"),)),
            )
        )
        writer = Writer(definitions, Traverser(()), package="test")
        assert writer.find_soap_action("Get", "Quotes") == "urn:a"


class TestTypeMapping:
    """Mapping of schema type references to Python annotations."""

    def test_builtin_types(self, stockquote_writer):
        assert stockquote_writer.python_type(QName(XSD_NS, "int"), False) == "int"
        assert stockquote_writer.python_type(QName(XSD_NS, "date"), True) == "datetime.date | None"

    def test_declared_types(self, stockquote_writer):
        assert stockquote_writer.python_type(QName(STOCK, "Currency"), False) == "Currency"
        assert stockquote_writer.python_type(QName(STOCK, "TradePrice"), False) == "TradePrice | None"

    def test_unknown_builtin_is_text(self, stockquote_writer):
        assert stockquote_writer.python_type(QName(XSD_NS, "gYearMonth"), False) == "str"

    def test_unresolved_reference(self, stockquote_writer, caplog):
        with caplog.at_level(logging.WARNING):
            assert stockquote_writer.python_type(QName("urn:other", "Missing"), False) == "AnyType"
        assert "could not be resolved" in caplog.text

    def test_restriction_chain(self):
        schema = XSDSchema(
            target_namespace="urn:t",
            simple_types=(
                SimpleType("Quantity", base=QName("urn:t", "Count")),
                SimpleType("Count", base=QName(XSD_NS, "int")),
            ),
        )
        writer = writer_for(schema)

        assert writer.simple_type_target(schema.simple_types[0]) == "int"
        assert writer.xsd_name(QName("urn:t", "Quantity")) == "int"

    def test_cyclic_restriction_terminates(self):
        schema = XSDSchema(
            target_namespace="urn:t",
            simple_types=(
                SimpleType("A", base=QName("urn:t", "B")),
                SimpleType("B", base=QName("urn:t", "A")),
            ),
        )
        writer = writer_for(schema)

        assert writer.simple_type_target(schema.simple_types[0]) == "str"


class TestGenTypes:
    """Generated type declarations of the stock quote document."""

    @pytest.fixture
    def types(self, stockquote_writer):
        return stockquote_writer.gen_types()

    def test_enum(self, types):
        assert "class Currency(str, Enum):" in types
        assert '    """ISO 4217 currency code."""' in types
        assert '    USD = "USD"' in types
        assert '    In_kind = "in-kind"' in types

    def test_dataclass(self, types):
        assert "@dataclass\nclass TradePriceRequest:" in types
        assert '    _xml_name = "GetLastTradePrice"' in types
        assert '    _xml_namespace = "urn:stock"' in types
        assert '    tickerSymbol: str = element("tickerSymbol", namespace="urn:stock", xsd="string")' in types
        assert '    currency: Currency | None = element("currency", namespace="urn:stock", xsd="string")' in types

    def test_occurrence_and_attributes(self, types):
        assert '    price: float = element("price", namespace="urn:stock", xsd="float")' in types
        assert (
            '    time: datetime.datetime | None = element("time", namespace="urn:stock", xsd="dateTime")' in types
        )
        assert (
            '    exchange: list[str] = element("exchange", namespace="urn:stock", xsd="string", many=True)' in types
        )
        assert '    astring: str | None = attribute("string", xsd="string")' in types

    def test_anonymous_element_type(self, types):
        assert "class Ping:" in types
        assert '    _xml_name = "Ping"' in types
        assert '    message: str = element("message", namespace="urn:stock", xsd="string")' in types

    def test_element_aliases(self, types):
        assert "GetLastTradePrice = TradePriceRequest" in types
        assert "GetLastTradePriceResponse = TradePrice" in types

    def test_declaration_order(self, types):
        assert types.index("class Currency") < types.index("class TradePriceRequest")
        assert types.index("class TradePrice:") < types.index("GetLastTradePriceResponse = TradePrice")

    def test_base_class_precedes_subclass(self):
        schema = XSDSchema(
            target_namespace="urn:t",
            complex_types=(
                ComplexType(
                    "Car",
                    base=QName("urn:t", "Vehicle"),
                    derivation="extension",
                    elements=(Element("doors", type=QName(XSD_NS, "int")),),
                ),
                ComplexType("Vehicle", elements=(Element("wheels", type=QName(XSD_NS, "int")),)),
            ),
        )

        types = writer_for(schema).gen_types()

        assert "class Car(Vehicle):" in types
        assert types.index("class Vehicle:") < types.index("class Car(Vehicle):")

    def test_nested_anonymous_type(self):
        schema = XSDSchema(
            target_namespace="urn:t",
            complex_types=(
                ComplexType(
                    "Order",
                    elements=(
                        Element(
                            "line",
                            max_occurs=None,
                            complex_type=ComplexType("", elements=(Element("sku", type=QName(XSD_NS, "string")),)),
                        ),
                    ),
                ),
            ),
        )

        types = writer_for(schema).gen_types()

        assert "class OrderLine:" in types
        assert '    line: list[OrderLine] = element("line", many=True)' in types

    def test_simple_content(self):
        schema = XSDSchema(
            target_namespace="urn:t",
            complex_types=(
                ComplexType("Money", base=QName(XSD_NS, "decimal"), derivation="extension", simple_content=True),
            ),
        )

        types = writer_for(schema).gen_types()

        assert '    value: Decimal | None = text(xsd="decimal")' in types

    def test_reserved_field_names(self):
        schema = XSDSchema(
            target_namespace="urn:t",
            complex_types=(
                ComplexType(
                    "Request",
                    elements=(
                        Element("class", type=QName(XSD_NS, "string")),
                        Element("my-value", type=QName(XSD_NS, "int"), nillable=True),
                    ),
                ),
            ),
        )

        types = writer_for(schema).gen_types()

        assert '    class_: str = element("class", xsd="string")' in types
        assert '    my_value: int | None = element("my-value", xsd="int", nillable=True)' in types

    def test_keep_schema_casing(self):
        schema = XSDSchema(target_namespace="urn:t", complex_types=(ComplexType("address"),))
        definitions = WSDL(schemas=(schema,))

        keep = Writer(definitions, Traverser(definitions.schemas), package="test", make_public_fn=lambda name: name)

        assert "class address:" in keep.gen_types()
        assert "class Address:" in writer_for(schema).gen_types()


class TestCollisionOutput:
    """Generated types of a document with colliding type names."""

    @pytest.fixture
    def types(self):
        return Generator(str(COLLISIONS_WSDL)).unmarshal().gen_types()

    def test_renamed_classes(self, types):
        assert "class Item1:" in types
        assert "class Item2:" in types
        assert "class Item:" not in types

    def test_references_use_renamed_classes(self, types):
        assert '    item: Item1 | None = element("item")' in types
        assert '    item: list[Item2] = element("item", many=True)' in types

    def test_element_keeps_its_name(self, types):
        assert "Item = Item1" in types


class TestGenOperations:
    def test_client_class(self, stockquote_writer):
        operations = stockquote_writer.gen_operations()

        assert "class StockQuotePortType:" in operations
        assert "    def __init__(self, client: SOAPClient) -> None:" in operations
        assert "    def GetLastTradePrice(self, request: TradePriceRequest) -> TradePrice | None:" in operations
        assert '        """Get the last trade price of a symbol."""' in operations
        assert (
            '        return self._client.call("http://example.com/GetLastTradePrice", request, TradePrice, '
            'element="{urn:stock}GetLastTradePrice")'
        ) in operations

    def test_anonymous_element_operation(self, stockquote_writer):
        operations = stockquote_writer.gen_operations()

        assert "    def Ping(self, request: Ping) -> PingResponse | None:" in operations

    def test_operation_without_parts(self, stockquote_writer):
        operations = stockquote_writer.gen_operations()

        assert "    def Heartbeat(self) -> None:" in operations
        assert '        return self._client.call("", None, None)' in operations

    def test_port_type_name_clashing_with_type(self):
        schema = XSDSchema(target_namespace="urn:t", complex_types=(ComplexType("Quotes"),))
        definitions = WSDL(schemas=(schema,), port_types=(PortType("Quotes"),))
        writer = Writer(definitions, Traverser(definitions.schemas), package="test")

        assert "class QuotesClient:" in writer.gen_operations()


class TestGenSoap:
    def test_factory_function(self, stockquote_writer):
        soap = stockquote_writer.gen_soap()

        assert (
            'def new_stockQuotePort(url: str = "http://example.com/stockquote", **kwargs: Any) -> StockQuotePortType:'
            in soap
        )
        assert "    return StockQuotePortType(SOAPClient(url, **kwargs))" in soap

    def test_port_without_binding_is_skipped(self):
        writer = Writer(WSDL(), Traverser(()), package="test")
        assert writer.gen_soap().strip() == ""


class TestGenHeaders:
    def test_client_header(self, stockquote_writer):
        header = stockquote_writer.gen_header()

        assert header.startswith(f'"""Code generated by pywsdl from {STOCKQUOTE_WSDL}. DO NOT EDIT.')
        assert "from pywsdl.soap import AnyType, AnyURI, NCName, SOAPClient, attribute, element, text" in header

    def test_server_header_imports_client_module(self):
        writer = Generator(str(STOCKQUOTE_WSDL), module_name="stockquote").unmarshal()
        assert "from .stockquote import *  # noqa: F403" in writer.gen_server_header()


class TestGenServer:
    """Generated server skeleton."""

    def test_embedded_wsdl(self, stockquote_writer):
        wsdl = stockquote_writer.gen_server_wsdl()

        assert wsdl.startswith('\n\nWSDL = """<?xml version=')
        assert 'Stock quotes for \\"ticker\\" symbols.' in wsdl

    def test_service_and_server_classes(self, stockquote_writer):
        server = stockquote_writer.gen_server()

        assert "class StockQuotePortTypeService:" in server
        assert "    def GetLastTradePrice(self, request: TradePriceRequest) -> TradePrice | None:" in server
        assert '        raise NotImplementedError("GetLastTradePrice")' in server
        assert "class StockQuotePortTypeServer(SOAPServer):" in server
        assert "    def __init__(self, service: StockQuotePortTypeService) -> None:" in server
        assert "        super().__init__(WSDL)" in server
        assert (
            '        self.register("GetLastTradePrice", service.GetLastTradePrice, '
            'soap_action="http://example.com/GetLastTradePrice", element="{urn:stock}GetLastTradePrice", '
            'response_element="{urn:stock}GetLastTradePriceResponse", request_type=TradePriceRequest)'
        ) in server
        assert '        self.register("Heartbeat", service.Heartbeat)' in server
