"""Extension function registry.

Extension functions are dispatched by name. Each function declares its
argument tags, so arity and type errors are reported uniformly before the
implementation runs:

- unknown name            -> FunctionNotFound
- wrong argument count    -> ArityMismatch
- wrong argument tag      -> TypeMismatch
- bad (well-typed) input  -> ExtensionError, raised by the implementation
"""

from __future__ import annotations

__all__ = [
    "Extension",
    "ExtensionFunction",
    "ExtensionRegistry",
]

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from cedar_acp.exceptions import ArityMismatch, FunctionNotFound, TypeMismatch
from cedar_acp.values import Value, type_name


@dataclass(frozen=True, slots=True)
class ExtensionFunction:
    """One callable extension function.

    Attributes:
        name: Name used in policies (e.g. "isLoopback").
        arg_types: Expected value class per positional argument.
        implementation: Pure function over the (already type-checked) args.
        is_constructor: True for functions building an extension value from
            a String (ip, u256, datetime, duration). The loader's `__extn`
            encoding may only call constructors.
    """

    name: str
    arg_types: tuple[type, ...]
    implementation: Callable[..., Value]
    is_constructor: bool = False

    @property
    def arity(self) -> int:
        return len(self.arg_types)

    def call(self, args: Sequence[Value]) -> Value:
        if len(args) != self.arity:
            raise ArityMismatch(self.name, self.arity, len(args))
        for position, (arg, expected) in enumerate(zip(args, self.arg_types), start=1):
            if not isinstance(arg, expected):
                raise TypeMismatch(
                    f"argument {position} of `{self.name}`: expected {expected.tag}, got {type_name(arg)}",
                    expected=(expected.tag,),
                    actual=type_name(arg),
                )
        return self.implementation(*args)


@dataclass(frozen=True, slots=True)
class Extension:
    """A named group of extension functions (e.g. "ipaddr")."""

    name: str
    functions: tuple[ExtensionFunction, ...]


class ExtensionRegistry:
    """Name -> ExtensionFunction lookup table.

    Built once and only read afterwards, so a registry can be shared by
    concurrent evaluations.
    """

    def __init__(self, extensions: Iterable[Extension] = ()) -> None:
        self._functions: dict[str, ExtensionFunction] = {}
        self._extensions: list[str] = []
        for extension in extensions:
            self.register(extension)

    def register(self, extension: Extension) -> None:
        """Add all functions of an extension.

        Raises:
            ValueError: If a function name is already registered.
        """
        for function in extension.functions:
            if function.name in self._functions:
                raise ValueError(f"Extension function `{function.name}` registered twice")
            self._functions[function.name] = function
        self._extensions.append(extension.name)

    @property
    def extension_names(self) -> list[str]:
        return list(self._extensions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def get(self, name: str) -> ExtensionFunction:
        try:
            return self._functions[name]
        except KeyError:
            raise FunctionNotFound(name) from None

    def call(self, name: str, args: Sequence[Value]) -> Value:
        """Look up and invoke a function.

        Raises:
            FunctionNotFound: Unknown name.
            ArityMismatch: Wrong argument count.
            TypeMismatch: Wrong argument tag.
            ExtensionError: Implementation rejected the input.
            ArithmeticOverflow: Result out of range.
        """
        return self.get(name).call(args)

    def constructor(self, name: str) -> ExtensionFunction:
        """Return a constructor function for `__extn` decoding.

        Raises:
            FunctionNotFound: If name is unknown or not a constructor.
        """
        function = self.get(name)
        if not function.is_constructor:
            raise FunctionNotFound(name)
        return function
