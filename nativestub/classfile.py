"""JVM class file parser"""

import io
import struct
from typing import Optional

from .errors import ClassFormatError
from .injected import injected_members
from .types import AccessFlags, ClassMetadata, FieldInfo, MethodInfo, PRIMITIVE_DESCRIPTORS, internal_to_descriptor

MAGIC = 0xCAFEBABE

# Constant pool tags
CONSTANT_Utf8 = 1
CONSTANT_Integer = 3
CONSTANT_Float = 4
CONSTANT_Long = 5
CONSTANT_Double = 6
CONSTANT_Class = 7
CONSTANT_String = 8
CONSTANT_Fieldref = 9
CONSTANT_Methodref = 10
CONSTANT_InterfaceMethodref = 11
CONSTANT_NameAndType = 12
CONSTANT_MethodHandle = 15
CONSTANT_MethodType = 16
CONSTANT_Dynamic = 17
CONSTANT_InvokeDynamic = 18
CONSTANT_Module = 19
CONSTANT_Package = 20

# Entries that are a single u2 index
_U2_TAGS = (CONSTANT_Class, CONSTANT_String, CONSTANT_MethodType, CONSTANT_Module, CONSTANT_Package)
# Entries that are a pair of u2 indices
_U2_PAIR_TAGS = (
    CONSTANT_Fieldref, CONSTANT_Methodref, CONSTANT_InterfaceMethodref,
    CONSTANT_NameAndType, CONSTANT_Dynamic, CONSTANT_InvokeDynamic,
)


def _field_descriptor_end(desc: str, start: int) -> int:
    """Index just past the field descriptor beginning at start"""
    i = start
    while i < len(desc) and desc[i] == "[":
        i += 1
    if i >= len(desc):
        raise ClassFormatError(f"Truncated descriptor {desc!r}")
    if desc[i] == "L":
        end = desc.find(";", i)
        if end < 0:
            raise ClassFormatError(f"Unterminated class name in descriptor {desc!r}")
        return end + 1
    if desc[i] in PRIMITIVE_DESCRIPTORS and desc[i] != "V":
        return i + 1
    raise ClassFormatError(f"Bad type character {desc[i]!r} in descriptor {desc!r}")


def parse_method_descriptor(desc: str) -> tuple[list[str], str]:
    """Split (I[Ljava/lang/String;J)V into (['I', '[Ljava/lang/String;', 'J'], 'V')"""
    if not desc.startswith("("):
        raise ClassFormatError(f"Bad method descriptor {desc!r}")
    close = desc.find(")")
    if close < 0:
        raise ClassFormatError(f"Bad method descriptor {desc!r}")

    params = []
    i = 1
    while i < close:
        end = _field_descriptor_end(desc, i)
        params.append(desc[i:end])
        i = end

    ret = desc[close + 1:]
    if ret != "V" and (not ret or _field_descriptor_end(ret, 0) != len(ret)):
        raise ClassFormatError(f"Bad return type in method descriptor {desc!r}")
    return params, ret


class ClassFileParser:
    """Parses the structural parts of a class file into ClassMetadata.

    Only what stub and header generation consume is kept: names, flags,
    supertypes, fields and methods. Attributes are skipped.
    """

    def __init__(self, data: bytes):
        self._stream = io.BytesIO(data)
        self._pool: list[Optional[tuple[int, object]]] = []

    def parse(self) -> ClassMetadata:
        if self._u4() != MAGIC:
            raise ClassFormatError("Bad magic number")
        self._u2()  # minor
        self._u2()  # major
        self._read_constant_pool()

        access_flags = AccessFlags(self._u2())
        internal_name = self._class_name(self._u2())
        super_idx = self._u2()
        super_descriptor = internal_to_descriptor(self._class_name(super_idx)) if super_idx else None
        interfaces = tuple(
            internal_to_descriptor(self._class_name(self._u2())) for _ in range(self._u2())
        )

        fields = []
        for _ in range(self._u2()):
            flags, name, desc = self._member()
            fields.append(FieldInfo(name=name, descriptor=desc, access_flags=flags))

        is_interface = bool(access_flags & AccessFlags.INTERFACE)
        methods = []
        for _ in range(self._u2()):
            flags, name, desc = self._member()
            params, ret = parse_method_descriptor(desc)
            methods.append(MethodInfo(
                owner=internal_name,
                name=name,
                descriptor=desc,
                access_flags=flags,
                owner_is_interface=is_interface,
                parameter_types=params,
                return_type=ret,
            ))

        self._skip_attributes()

        cls = ClassMetadata(
            internal_name=internal_name,
            access_flags=access_flags,
            super_descriptor=super_descriptor,
            interface_descriptors=interfaces,
            fields=fields,
            methods=methods,
        )
        injected = injected_members(internal_name)
        cls.injected_fields.update(injected.fields)
        cls.injected_methods.update(injected.methods)
        cls.injected_static_methods.update(injected.static_methods)
        return cls

    def _read(self, n: int) -> bytes:
        data = self._stream.read(n)
        if len(data) != n:
            raise ClassFormatError("Unexpected end of class file")
        return data

    def _u1(self) -> int:
        return self._read(1)[0]

    def _u2(self) -> int:
        return struct.unpack(">H", self._read(2))[0]

    def _u4(self) -> int:
        return struct.unpack(">I", self._read(4))[0]

    def _read_constant_pool(self):
        count = self._u2()
        # 1-based, Long and Double take two slots
        pool: list[Optional[tuple[int, object]]] = [None] * max(count, 1)
        i = 1
        while i < count:
            tag = self._u1()
            if tag == CONSTANT_Utf8:
                raw = self._read(self._u2())
                pool[i] = (tag, raw.decode("utf-8", errors="replace"))
            elif tag in (CONSTANT_Integer, CONSTANT_Float):
                pool[i] = (tag, self._u4())
            elif tag in (CONSTANT_Long, CONSTANT_Double):
                high = self._u4()
                low = self._u4()
                pool[i] = (tag, (high << 32) | low)
                i += 1
            elif tag in _U2_TAGS:
                pool[i] = (tag, self._u2())
            elif tag in _U2_PAIR_TAGS:
                pool[i] = (tag, (self._u2(), self._u2()))
            elif tag == CONSTANT_MethodHandle:
                pool[i] = (tag, (self._u1(), self._u2()))
            else:
                raise ClassFormatError(f"Unsupported constant pool tag {tag}")
            i += 1
        self._pool = pool

    def _entry(self, idx: int, tag: int):
        entry = self._pool[idx] if 0 < idx < len(self._pool) else None
        if entry is None or entry[0] != tag:
            raise ClassFormatError(f"Bad constant pool index {idx}")
        return entry[1]

    def _utf8(self, idx: int) -> str:
        return self._entry(idx, CONSTANT_Utf8)

    def _class_name(self, idx: int) -> str:
        return self._utf8(self._entry(idx, CONSTANT_Class))

    def _member(self) -> tuple[AccessFlags, str, str]:
        flags = AccessFlags(self._u2())
        name = self._utf8(self._u2())
        desc = self._utf8(self._u2())
        self._skip_attributes()
        return flags, name, desc

    def _skip_attributes(self):
        for _ in range(self._u2()):
            self._u2()
            self._read(self._u4())
