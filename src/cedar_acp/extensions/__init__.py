"""Extension functions over extension values.

Structure:
    registry.py   - ExtensionFunction, Extension, ExtensionRegistry
    ipaddr.py     - ip(), isLoopback(), isMulticast(), isInRange(), ...
    u256.py       - u256(), u256LessThan(), u256Add(), ...
    temporal.py   - datetime(), duration(), offset(), toDays(), ...

All built-in functions are pure and total over well-typed input.
"""

from functools import lru_cache

from cedar_acp.extensions import ipaddr, temporal, u256
from cedar_acp.extensions.registry import Extension, ExtensionFunction, ExtensionRegistry

BUILTIN_EXTENSIONS: tuple[Extension, ...] = (ipaddr.EXTENSION, u256.EXTENSION, temporal.EXTENSION)


@lru_cache(maxsize=1)
def default_registry() -> ExtensionRegistry:
    """Return the shared registry holding all built-in extensions.

    The registry is read-only after construction, so sharing it across
    calls and threads carries no mutable state between them.
    """
    return ExtensionRegistry(BUILTIN_EXTENSIONS)


__all__ = [
    "BUILTIN_EXTENSIONS",
    "Extension",
    "ExtensionFunction",
    "ExtensionRegistry",
    "default_registry",
]
