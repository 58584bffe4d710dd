"""Generate Python SOAP clients and server skeletons from WSDL documents."""

__version__ = "0.1.0"
