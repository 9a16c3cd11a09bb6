"""Data types for resolved JVM classes"""

from dataclasses import dataclass, field
from enum import IntFlag
from typing import Optional


class AccessFlags(IntFlag):
    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SUPER = 0x0020
    VOLATILE = 0x0040
    TRANSIENT = 0x0080
    NATIVE = 0x0100
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    STRICT = 0x0800
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000


PRIMITIVE_DESCRIPTORS = frozenset("BCDFIJSZV")


def descriptor_to_internal(descriptor: str) -> str:
    """Ljava/lang/String; => java/lang/String"""
    return descriptor[1:-1]


def internal_to_descriptor(internal_name: str) -> str:
    """java/lang/String => Ljava/lang/String;"""
    return f"L{internal_name};"


def class_name_to_descriptor(class_name: str) -> str:
    """java.lang.String (or java/lang/String) => Ljava/lang/String;"""
    return internal_to_descriptor(class_name.replace(".", "/"))


@dataclass
class FieldInfo:
    """Field declared in a class file"""
    name: str
    descriptor: str
    access_flags: AccessFlags = AccessFlags(0)

    @property
    def is_static(self) -> bool:
        return bool(self.access_flags & AccessFlags.STATIC)


@dataclass
class MethodInfo:
    """Method declared in a class file"""
    owner: str
    name: str
    descriptor: str
    access_flags: AccessFlags = AccessFlags(0)
    owner_is_interface: bool = False
    parameter_types: list[str] = field(default_factory=list)
    return_type: str = "V"

    @property
    def signature(self) -> str:
        return f"{self.name}{self.descriptor}"

    @property
    def full_signature(self) -> str:
        return f"{self.owner.replace('/', '.')}/{self.signature}"

    @property
    def is_static(self) -> bool:
        return bool(self.access_flags & AccessFlags.STATIC)

    @property
    def is_native(self) -> bool:
        return bool(self.access_flags & AccessFlags.NATIVE)

    @property
    def is_abstract(self) -> bool:
        return bool(self.access_flags & AccessFlags.ABSTRACT)

    @property
    def is_default(self) -> bool:
        """Concrete instance method declared on an interface"""
        return self.owner_is_interface and not self.is_abstract and not self.is_static

    @property
    def non_virtual_only(self) -> bool:
        """Constructors and private methods are never dispatched by short signature"""
        return self.name in ("<init>", "<clinit>") or bool(self.access_flags & AccessFlags.PRIVATE)


class ClassMetadata:
    """Reference class loaded from a class file.

    Supertypes are recorded by descriptor when the class file is parsed. The
    metadata of those supertypes is attached later through :meth:`resolved`,
    once the resolver has produced it (it may itself still be resolving).
    """

    def __init__(
        self,
        internal_name: str,
        access_flags: AccessFlags,
        super_descriptor: Optional[str] = None,
        interface_descriptors: tuple[str, ...] = (),
        fields: Optional[list[FieldInfo]] = None,
        methods: Optional[list[MethodInfo]] = None,
    ):
        self.internal_name = internal_name
        self.descriptor = internal_to_descriptor(internal_name)
        self.access_flags = access_flags
        self.super_descriptor = super_descriptor
        self.interface_descriptors = tuple(interface_descriptors)
        self.fields = fields or []
        self.methods = methods or []
        self.injected_fields: dict[str, str] = {}
        self.injected_methods: dict[str, str] = {}
        self.injected_static_methods: dict[str, str] = {}
        self.superclass: Optional["ClassMetadata"] = None
        self.interfaces: list["ClassMetadata"] = []
        self.is_resolved = False

    def __repr__(self) -> str:
        return f"ClassMetadata({self.internal_name!r})"

    @property
    def is_interface(self) -> bool:
        return bool(self.access_flags & AccessFlags.INTERFACE)

    def native_methods(self) -> list[MethodInfo]:
        return [m for m in self.methods if m.is_native]

    def resolved(self, superclass: Optional["ClassMetadata"], interfaces: list["ClassMetadata"]) -> None:
        """Attach the resolved superclass and interfaces"""
        self.superclass = superclass
        self.interfaces = list(interfaces)
        self.is_resolved = True

    def _superclass_chain(self) -> list["ClassMetadata"]:
        chain = []
        seen = {self.descriptor}
        cls = self.superclass
        while cls is not None and cls.descriptor not in seen:
            seen.add(cls.descriptor)
            chain.append(cls)
            cls = cls.superclass
        return chain

    @staticmethod
    def _interface_closure(roots: list["ClassMetadata"]) -> list["ClassMetadata"]:
        """Every interface reachable from roots, depth first, each once"""
        result = []
        seen = set()
        stack = list(reversed(roots))
        while stack:
            iface = stack.pop()
            if iface.descriptor in seen:
                continue
            seen.add(iface.descriptor)
            result.append(iface)
            stack.extend(reversed(iface.interfaces))
        return result

    def miranda_and_default_methods(self) -> list[MethodInfo]:
        """Interface methods a class exposes without declaring them itself.

        Methods already declared by the class, declared by a superclass, or
        reachable through a superclass's interfaces are left out since the
        superclass declaration already carries them.
        """
        if self.is_interface:
            return []

        supers = self._superclass_chain()
        visible = {m.signature for m in self.methods}
        for cls in supers:
            visible.update(m.signature for m in cls.methods)
        inherited_ifaces = []
        for cls in supers:
            inherited_ifaces.extend(cls.interfaces)
        for iface in self._interface_closure(inherited_ifaces):
            visible.update(m.signature for m in iface.methods)

        result = []
        for iface in self._interface_closure(self.interfaces):
            for m in iface.methods:
                if m.is_static or m.name == "<clinit>" or m.signature in visible:
                    continue
                visible.add(m.signature)
                result.append(m)
        return result

    def uninherited_default_methods(self) -> list[MethodInfo]:
        """Default methods of superinterfaces that an interface does not redeclare"""
        if not self.is_interface:
            return []

        declared = {m.signature for m in self.methods}
        result = []
        for iface in self._interface_closure(self.interfaces):
            for m in iface.methods:
                if m.is_default and m.signature not in declared:
                    declared.add(m.signature)
                    result.append(m)
        return result


@dataclass
class ArrayClassMetadata:
    """Synthesized metadata for an array type"""
    component_descriptor: str

    @property
    def descriptor(self) -> str:
        return f"[{self.component_descriptor}"


@dataclass
class PrimitiveClassMetadata:
    """Synthesized metadata for a primitive type or void"""
    descriptor: str
