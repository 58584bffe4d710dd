"""Exceptions raised while generating code from a WSDL document."""

from __future__ import annotations

from typing import override


class PyWSDLError(Exception):
    """Base class for all errors that terminate a generation run."""

    pass


class InputError(PyWSDLError):
    """Raised for invalid arguments, before anything is fetched."""

    pass


class FetchError(PyWSDLError):
    """Raised when a WSDL or XSD document cannot be read or downloaded."""

    def __init__(self, location: str, reason: str):
        super().__init__(f"Failed to fetch '{location}': {reason}")
        self.location = location
        self.reason = reason


class ParseError(PyWSDLError):
    """Raised when a fetched document is not a well-formed WSDL or XSD document."""

    def __init__(self, location: str, reason: str):
        super().__init__(f"Failed to parse '{location}': {reason}")
        self.location = location
        self.reason = reason


class GenerationError(PyWSDLError):
    """Raised when one or more code generators failed.

    Attributes:
        errors: Every captured failure as `(artifact, exception)`, in fixed task order.
    """

    def __init__(self, errors: list[tuple[str, BaseException]]):
        artifact, first = errors[0]
        super().__init__(f"Generating {artifact} failed: {first}")
        self.errors = errors

    @override
    def __str__(self) -> str:
        message = super().__str__()
        if len(self.errors) > 1:
            others = ", ".join(artifact for artifact, _ in self.errors[1:])
            message = f"{message} (also failed: {others})"
        return message
