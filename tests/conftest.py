import struct
import zipfile
from pathlib import Path
from typing import Optional

import pytest

from nativestub.classpath import Classpath
from nativestub.resolver import ClassResolver

ACC_PUBLIC = 0x0001
ACC_PRIVATE = 0x0002
ACC_STATIC = 0x0008
ACC_FINAL = 0x0010
ACC_SUPER = 0x0020
ACC_VOLATILE = 0x0040
ACC_NATIVE = 0x0100
ACC_INTERFACE = 0x0200
ACC_ABSTRACT = 0x0400

CLASS = ACC_PUBLIC | ACC_SUPER
INTERFACE = ACC_PUBLIC | ACC_INTERFACE | ACC_ABSTRACT


class _ConstantPool:
    def __init__(self):
        self.entries: list[bytes] = []
        self.next_index = 1
        self._index: dict[tuple, int] = {}

    def _add(self, key: tuple, data: bytes, slots: int = 1) -> int:
        if key in self._index:
            return self._index[key]
        idx = self.next_index
        self.entries.append(data)
        self.next_index += slots
        self._index[key] = idx
        return idx

    def utf8(self, value: str) -> int:
        raw = value.encode("utf-8")
        return self._add(("utf8", value), struct.pack(">BH", 1, len(raw)) + raw)

    def class_ref(self, name: str) -> int:
        name_idx = self.utf8(name)
        return self._add(("class", name), struct.pack(">BH", 7, name_idx))

    def long(self, value: int) -> int:
        return self._add(("long", value), struct.pack(">BQ", 5, value), slots=2)


def build_class(
    name: str,
    super_name: Optional[str] = "java/lang/Object",
    interfaces=(),
    access: int = CLASS,
    fields=(),
    methods=(),
    long_constant: Optional[int] = None,
) -> bytes:
    """Assemble a minimal class file.

    fields and methods are (name, descriptor, access_flags) tuples. Methods
    that are neither abstract nor native get a dummy Code attribute.
    """
    pool = _ConstantPool()
    if long_constant is not None:
        pool.long(long_constant)
    this_idx = pool.class_ref(name)
    super_idx = pool.class_ref(super_name) if super_name else 0
    iface_idx = [pool.class_ref(i) for i in interfaces]
    code_idx = pool.utf8("Code")

    body = struct.pack(">HHH", access, this_idx, super_idx)
    body += struct.pack(">H", len(iface_idx)) + b"".join(struct.pack(">H", i) for i in iface_idx)

    body += struct.pack(">H", len(fields))
    for f_name, f_desc, f_flags in fields:
        body += struct.pack(">HHHH", f_flags, pool.utf8(f_name), pool.utf8(f_desc), 0)

    body += struct.pack(">H", len(methods))
    for m_name, m_desc, m_flags in methods:
        body += struct.pack(">HHH", m_flags, pool.utf8(m_name), pool.utf8(m_desc))
        if m_flags & (ACC_ABSTRACT | ACC_NATIVE):
            body += struct.pack(">H", 0)
        else:
            body += struct.pack(">HHI", 1, code_idx, 4) + b"\x00\x01\x02\x03"

    body += struct.pack(">H", 0)

    header = struct.pack(">IHHH", 0xCAFEBABE, 0, 52, pool.next_index)
    return header + b"".join(pool.entries) + body


# Miniature class library: internal name -> build_class keyword arguments
MINI_JDK = {
    "java/lang/Object": dict(
        super_name=None,
        methods=[
            ("<init>", "()V", ACC_PUBLIC),
            ("hashCode", "()I", ACC_PUBLIC | ACC_NATIVE),
            ("getClass", "()Ljava/lang/Class;", ACC_PUBLIC | ACC_FINAL | ACC_NATIVE),
        ],
    ),
    "java/lang/Class": dict(
        methods=[
            ("getName", "()Ljava/lang/String;", ACC_PUBLIC),
            ("isArray", "()Z", ACC_PUBLIC | ACC_NATIVE),
        ],
    ),
    "java/io/Serializable": dict(access=INTERFACE),
    "java/lang/CharSequence": dict(
        access=INTERFACE,
        methods=[
            ("length", "()I", ACC_PUBLIC | ACC_ABSTRACT),
            ("charAt", "(I)C", ACC_PUBLIC | ACC_ABSTRACT),
            ("isEmpty", "()Z", ACC_PUBLIC),
        ],
    ),
    "java/lang/String": dict(
        interfaces=["java/io/Serializable", "java/lang/CharSequence"],
        fields=[("value", "[C", ACC_PRIVATE | ACC_FINAL)],
        methods=[
            ("length", "()I", ACC_PUBLIC),
            ("charAt", "(I)C", ACC_PUBLIC),
            ("intern", "()Ljava/lang/String;", ACC_PUBLIC | ACC_NATIVE),
        ],
    ),
    "java/lang/Throwable": dict(
        interfaces=["java/io/Serializable"],
        fields=[("detailMessage", "Ljava/lang/String;", ACC_PRIVATE)],
        methods=[
            ("getMessage", "()Ljava/lang/String;", ACC_PUBLIC),
            ("fillInStackTrace", "(I)Ljava/lang/Throwable;", ACC_PRIVATE | ACC_NATIVE),
        ],
    ),
    "java/lang/Runnable": dict(
        access=INTERFACE,
        methods=[("run", "()V", ACC_PUBLIC | ACC_ABSTRACT)],
    ),
    "java/lang/StackTraceElement": dict(
        fields=[
            ("declaringClass", "Ljava/lang/String;", ACC_PRIVATE),
            ("lineNumber", "I", ACC_PRIVATE),
        ],
    ),
    "java/lang/Thread": dict(
        interfaces=["java/lang/Runnable"],
        fields=[
            ("name", "Ljava/lang/String;", ACC_PRIVATE | ACC_VOLATILE),
            ("priority", "I", ACC_PRIVATE),
            ("MAX_PRIORITY", "I", ACC_PUBLIC | ACC_STATIC | ACC_FINAL),
        ],
        methods=[
            ("<init>", "()V", ACC_PUBLIC),
            ("run", "()V", ACC_PUBLIC),
            ("currentThread", "()Ljava/lang/Thread;", ACC_PUBLIC | ACC_STATIC | ACC_NATIVE),
            ("sleep", "(J)V", ACC_PUBLIC | ACC_STATIC | ACC_NATIVE),
            ("isAlive", "()Z", ACC_PUBLIC | ACC_FINAL | ACC_NATIVE),
            ("setPriority0", "(I)V", ACC_PRIVATE | ACC_NATIVE),
            ("holdsLock", "(Ljava/lang/Object;)Z", ACC_PUBLIC | ACC_STATIC | ACC_NATIVE),
            ("dumpThreads", "([Ljava/lang/Thread;)[[Ljava/lang/StackTraceElement;",
             ACC_PRIVATE | ACC_STATIC | ACC_NATIVE),
        ],
    ),
    "demo/Greeter": dict(
        access=INTERFACE,
        fields=[("DEFAULT", "Ljava/lang/String;", ACC_PUBLIC | ACC_STATIC | ACC_FINAL)],
        methods=[
            ("greet", "()V", ACC_PUBLIC),
            ("name", "()Ljava/lang/String;", ACC_PUBLIC | ACC_ABSTRACT),
            ("create", "()Ldemo/Greeter;", ACC_PUBLIC | ACC_STATIC),
        ],
    ),
    "demo/LoudGreeter": dict(
        access=INTERFACE,
        interfaces=["demo/Greeter"],
        methods=[("shout", "()V", ACC_PUBLIC | ACC_ABSTRACT)],
    ),
    "demo/Impl": dict(
        interfaces=["demo/Greeter"],
        methods=[
            ("<init>", "()V", ACC_PUBLIC),
            ("name", "()Ljava/lang/String;", ACC_PUBLIC),
            ("compute", "(JD)J", ACC_PUBLIC | ACC_NATIVE),
        ],
    ),
    "demo/Plain": dict(
        methods=[("other", "()Ldemo/Other_Name;", ACC_PUBLIC)],
    ),
    "demo/Other_Name": dict(
        fields=[("x", "D", ACC_PUBLIC)],
    ),
    "demo/sub/Deep": dict(
        methods=[("nop", "()V", ACC_PUBLIC | ACC_STATIC | ACC_NATIVE)],
    ),
}


def write_classes(root: Path, classes: dict) -> Path:
    for name, kwargs in classes.items():
        target = root.joinpath(*name.split("/")).with_suffix(".class")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(build_class(name, **kwargs))
    return root


def write_jar(path: Path, classes: dict) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, kwargs in classes.items():
            zf.writestr(f"{name}.class", build_class(name, **kwargs))
    return path


@pytest.fixture
def jdk_dir(tmp_path: Path) -> Path:
    return write_classes(tmp_path / "classes", MINI_JDK)


@pytest.fixture
def classpath(jdk_dir: Path):
    with Classpath.from_paths([str(jdk_dir)]) as cp:
        yield cp


@pytest.fixture
def resolver(classpath) -> ClassResolver:
    return ClassResolver(classpath)
