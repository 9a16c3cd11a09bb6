"""Type mapping between JVM descriptors and TypeScript type names"""

import re

from .errors import AmbiguousTypeError
from .types import PRIMITIVE_DESCRIPTORS, descriptor_to_internal, internal_to_descriptor


class TypeMapper:
    """Maps JVM descriptors to TypeScript types and back.

    Reference names are escaped by doubling literal underscores and then
    turning package separators into single underscores, so
    ``Lcom/foo/Foo_Bar;`` becomes ``com_foo_Foo__Bar``.

    Every reference type converted is recorded; ``take_references`` hands the
    recorded descriptors to whoever has to declare them.
    """

    NAMESPACE = "JVMTypes"
    ARRAY_TYPE = "JVMArray"
    NUMBER_TYPE = "number"
    LONG_TYPE = "Long"
    VOID_TYPE = "void"

    _UNDERSCORE_RUN = re.compile(r"_+")

    def __init__(self):
        self._references: dict[str, None] = {}

    def to_output_type(self, descriptor: str, qualified: bool = True) -> str:
        """Convert a descriptor to its TypeScript type"""
        prefix = f"{self.NAMESPACE}." if qualified else ""
        kind = descriptor[0]
        if kind == "[":
            return f"{prefix}{self.ARRAY_TYPE}<{self.to_output_type(descriptor[1:], qualified)}>"
        if kind == "L":
            self._references.setdefault(descriptor, None)
            return prefix + self.escape_name(descriptor_to_internal(descriptor))
        if kind == "J":
            return self.LONG_TYPE
        if kind == "V":
            return self.VOID_TYPE
        return self.NUMBER_TYPE

    @classmethod
    def from_output_type(cls, type_name: str) -> str:
        """Convert a TypeScript type back to a descriptor"""
        name = type_name.strip()
        if name.startswith(f"{cls.NAMESPACE}."):
            name = name[len(cls.NAMESPACE) + 1:]
        if name.startswith(f"{cls.ARRAY_TYPE}<") and name.endswith(">"):
            return f"[{cls.from_output_type(name[len(cls.ARRAY_TYPE) + 1:-1])}"
        if name in (cls.NUMBER_TYPE, cls.LONG_TYPE, cls.VOID_TYPE) or not name:
            raise AmbiguousTypeError(type_name)
        return internal_to_descriptor(cls.unescape_name(name))

    def take_references(self) -> list[str]:
        """Return and forget the reference descriptors recorded so far"""
        refs = list(self._references)
        self._references.clear()
        return refs

    @staticmethod
    def escape_name(internal_name: str) -> str:
        return internal_name.replace("_", "__").replace("/", "_")

    @classmethod
    def unescape_name(cls, escaped: str) -> str:
        # An even run holds only literal underscores; an odd run also holds a
        # package separator, which is placed first
        def _decode(match: re.Match) -> str:
            n = len(match.group(0))
            return ("/" if n % 2 else "") + "_" * (n // 2)
        return cls._UNDERSCORE_RUN.sub(_decode, escaped)

    @staticmethod
    def is_primitive(descriptor: str) -> bool:
        return descriptor in PRIMITIVE_DESCRIPTORS
