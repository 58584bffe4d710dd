"""Helper functionality that is used in other modules of this package."""

from __future__ import annotations

import keyword
import re
from collections.abc import Callable, Sequence

from pywsdl.xsd_types import BASIC_TYPES, XSD_TYPE_TO_PYTHON

INDENT = "    "
EMPTY_IDENTIFIER = "EmptyString"

# Names the generated modules bind, and builtins their annotations rely on.
GENERATED_NAMES = frozenset(
    {
        "dataclass",
        "field",
        "element",
        "attribute",
        "text",
        "datetime",
        "Decimal",
        "Enum",
        "Any",
        "AnyType",
        "AnyURI",
        "NCName",
        "SOAPClient",
        "SOAPServer",
        "WSDL",
        "str",
        "int",
        "float",
        "bool",
        "bytes",
        "list",
        "dict",
        "object",
    }
)

RESERVED_WORDS = frozenset(keyword.kwlist) | frozenset(keyword.softkwlist) | GENERATED_NAMES
"""Identifiers that receive a trailing underscore when used as names."""

RESERVED_WORDS_IN_ATTR = {"string": "astring"}
"""Extra replacements for attribute names, on top of `RESERVED_WORDS`."""

SPECIAL_CHARACTER_MAPPING = {
    "+": "Plus",
    "@": "At",
}

_SEPARATORS = frozenset(".-:")

MakePublicFn = Callable[[str], str]


def normalize(value: str) -> str:
    """Normalize a value so it can be used as a Python identifier.

    Designated punctuation is spelled out, namespace separators and hyphens become
    underscores and every other character that cannot appear in an identifier
    is dropped. A leading digit is prefixed with an underscore.

    Args:
        value (str): The raw XML name.

    Returns:
        str: The normalized identifier, possibly empty.
    """
    for character, replacement in SPECIAL_CHARACTER_MAPPING.items():
        value = value.replace(character, replacement)

    characters = []
    for character in value:
        if character in _SEPARATORS:
            characters.append("_")
        elif (character.isalnum() or character == "_") and f"a{character}".isidentifier():
            characters.append(character)

    result = "".join(characters)
    if result and result[0].isdigit():
        result = f"_{result}"
    return result


def replace_reserved_words(identifier: str) -> str:
    """Normalize an identifier and avoid Python keywords and generated names.

    E.g. 'class' becomes 'class_', 'my-field' becomes 'my_field'.

    Args:
        identifier (str): The original name.

    Returns:
        str: The sanitized name.
    """
    identifier = normalize(identifier)
    if identifier in RESERVED_WORDS:
        return f"{identifier}_"
    return identifier


def replace_attr_reserved_words(identifier: str) -> str:
    """Like `replace_reserved_words`, with the extra replacements for attribute names.

    Args:
        identifier (str): The original attribute name.

    Returns:
        str: The sanitized name.
    """
    identifier = normalize(identifier)
    if identifier in RESERVED_WORDS_IN_ATTR:
        return RESERVED_WORDS_IN_ATTR[identifier]
    if identifier in RESERVED_WORDS:
        return f"{identifier}_"
    return identifier


def make_public(identifier: str) -> str:
    """Upper-case the first character of an identifier.

    Canonical type spellings such as `str` or `datetime.date` pass through unchanged,
    an empty identifier maps to a placeholder name.

    Args:
        identifier (str): The identifier.

    Returns:
        str: The public variant.
    """
    if identifier in BASIC_TYPES:
        return identifier
    if not identifier:
        return EMPTY_IDENTIFIER
    return identifier[0].upper() + identifier[1:]


def make_private(identifier: str) -> str:
    """Lower-case the first character of an identifier."""
    if not identifier:
        return identifier
    return identifier[0].lower() + identifier[1:]


def keep_identifier(identifier: str) -> str:
    """Used in place of `make_public` when generated types keep their schema casing."""
    return identifier


def stripns(xsd_type: str) -> str:
    """Remove a namespace prefix, e.g. 'xsd:string' becomes 'string'."""
    parts = xsd_type.split(":")
    if len(parts) == 2:
        return parts[1]
    return parts[0]


def to_python_type(xsd_type: str, nillable: bool, make_public_fn: MakePublicFn = make_public) -> str:
    """Convert an XSD type name into the Python type used in a generated annotation.

    Known built-in types map to Python types. Any other name is treated as a reference
    to a generated class and is always optional, as complex values may be absent.

    Args:
        xsd_type (str): The type name, with or without a namespace prefix.
        nillable (bool): Whether the value may be absent (nillable or optional).
        make_public_fn (MakePublicFn): Casing applied to generated class names.

    Returns:
        str: The annotation, e.g. 'str', 'int | None' or 'Address | None'.
    """
    name = stripns(xsd_type)
    python_type = XSD_TYPE_TO_PYTHON.get(name.lower())

    if python_type is not None:
        return optional(python_type) if nillable else python_type

    return optional(replace_reserved_words(make_public_fn(name)))


def optional(python_type: str) -> str:
    """Wrap a type in the optional marker, e.g. 'int' becomes 'int | None'."""
    if python_type.endswith(" | None"):
        return python_type
    return f"{python_type} | None"


def remove_optional(python_type: str) -> str:
    """Remove the optional marker from a type, e.g. 'int | None' becomes 'int'."""
    return re.sub(r"\s*\|\s*None\s*$", "", python_type)


def python_string(value: str) -> str:
    """Quote a value as a double-quoted Python string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\r", "\\r")
    return f'"{escaped}"'


def new_docstring(text: str, indent: str = "") -> list[str]:
    """Create docstring lines from documentation text.

    Leading whitespace of each line is stripped. Documentation that is blank
    yields no lines at all.

    Args:
        text (str): The documentation text.
        indent (str): Indentation for every line.

    Returns:
        list[str]: The docstring lines.
    """
    lines = [line.strip() for line in text.strip().splitlines()]
    if not any(lines):
        return []

    lines = [line.replace("\\", "\\\\").replace('"', '\\"') for line in lines]
    if len(lines) == 1:
        return [f'{indent}"""{lines[0]}"""']

    out = [f'{indent}"""{lines[0]}']
    out.extend(f"{indent}{line}" if line else "" for line in lines[1:])
    out.append(f'{indent}"""')
    return out


def join_parameters(parameters: Sequence[str] | None) -> str:
    """Joins parameters by means of ', '.

    Args:
        parameters (Sequence[str] | None): The parameters to join.

    Returns:
        str: The joined parameters.
    """
    if parameters:
        return ", ".join(str(p) for p in parameters if p)

    else:
        return ""


def new_function(
    name: str,
    parameters: Sequence[str] | None = None,
    return_type: str | None = None,
) -> str:
    """Create the signature line of a function.

    Args:
        name (str): The function name.
        parameters (Sequence[str] | None, optional): The function parameters, if any. Defaults to None.
        return_type (str | None, optional): The function's return type. Defaults to None.

    Returns:
        str: The function signature, ending with a colon.
    """
    if return_type is None:
        return_type = "None"

    arguments = join_parameters(parameters)
    return f"def {name}({arguments}) -> {return_type}:"


def new_decorator(name: str, parameters: Sequence[str] | None = None) -> str:
    """Create a new decorator.

    Args:
        name (str): The name of the decorator.
        parameters (Sequence[str] | None, optional): The parameters of the decorator, if any.

    Returns:
        str: The decorator string.
    """
    if parameters:
        return f"@{name}({join_parameters(parameters)})"

    else:
        return f"@{name}"


def new_call(name: str, parameters: Sequence[str] | None = None) -> str:
    """Create a call expression, e.g. 'element("name", xsd="string")'."""
    return f"{name}({join_parameters(parameters)})"


def new_class_declaration(name: str, parameters: Sequence[str] | None = None) -> str:
    """Creates a string for declaring a class.

    For example, for a name of 'SomeClass' and a list of parameters that is 'str, Enum', the output
    will be 'class SomeClass(str, Enum):'.

    If no parameters are provided, the output is just 'class SomeClass:'.

    Args:
        name (str): The class name.
        parameters (Sequence[str] | None, optional):
            A list of parameters that are part of the class declaration. Defaults to None.

    Returns:
        str: The class declaration.
    """
    if parameters:
        return f"class {name}({join_parameters(parameters)}):"
    else:
        return f"class {name}:"


def indent_lines(lines: Sequence[str], depth: int = 1) -> list[str]:
    """Indent non-empty lines by a number of levels."""
    prefix = INDENT * depth
    return [f"{prefix}{line}" if line else "" for line in lines]
