"""Mapping of XML Schema built-in types to Python types."""

from __future__ import annotations

XSD_TYPE_TO_PYTHON = {
    "string": "str",
    "token": "str",
    "normalizedstring": "str",
    "language": "str",
    "name": "str",
    "qname": "str",
    "id": "str",
    "idref": "str",
    "float": "float",
    "double": "float",
    "decimal": "Decimal",
    "integer": "int",
    "int": "int",
    "short": "int",
    "byte": "int",
    "long": "int",
    "negativeinteger": "int",
    "nonpositiveinteger": "int",
    "positiveinteger": "int",
    "nonnegativeinteger": "int",
    "unsignedint": "int",
    "unsignedshort": "int",
    "unsignedbyte": "int",
    "unsignedlong": "int",
    "boolean": "bool",
    "datetime": "datetime.datetime",
    "date": "datetime.date",
    "time": "datetime.time",
    "duration": "str",
    "base64binary": "bytes",
    "hexbinary": "bytes",
    "anytype": "AnyType",
    "anysimpletype": "str",
    "ncname": "NCName",
    "anyuri": "AnyURI",
    # Vendor aliases seen in SDP service descriptions.
    "sdpstring": "str",
    "sdpboolean": "bool",
    "sdpbyte": "int",
    "sdpbigdecimal": "Decimal",
    "sdplong": "int",
    "sdpinteger": "int",
    "sdpbiginteger": "int",
    "sdpfloat": "float",
    "sdpdouble": "float",
    "sdpshort": "int",
    "sdpdate": "datetime.date",
    "sdptime": "datetime.time",
    "sdpdatetime": "datetime.datetime",
    "timestamp": "int",
}
"""Lower-cased XSD local type names to the Python type spelled in generated code."""

BASIC_TYPES = frozenset(
    {
        "str",
        "int",
        "float",
        "bool",
        "bytes",
        "Decimal",
        "datetime.datetime",
        "datetime.date",
        "datetime.time",
        "Any",
        "None",
        "object",
        "list",
        "dict",
    }
)
"""Python type spellings that are already canonical and must not be re-cased."""

HELPER_TYPES = ("AnyType", "AnyURI", "NCName")
"""Alias types the generated header imports from the runtime."""
