"""Header Generator - emits TypeScript declarations for every reachable JVM type"""

import logging
import re
from enum import Enum
from typing import Iterable, Optional, TextIO

from .errors import AmbiguousTypeError, ResolutionError
from .resolver import ClassResolver
from .type_mapper import TypeMapper
from .types import ClassMetadata, FieldInfo, MethodInfo, class_name_to_descriptor

logger = logging.getLogger(__name__)

HEADER_FILENAME = "JVMTypes.d.ts"
HEADER_FORMAT_VERSION = 1
HEADER_FORMAT_MARKER = "// nativestub header format "

THROWABLE = "Ljava/lang/Throwable;"

# Declarations sit at two spaces inside the module block; the name ends at
# the first space, '<' or '{'.
_DECLARATION = re.compile(r"^  export (?:class|interface) ([^\s<{]+)", re.MULTILINE)


class Phase(Enum):
    INIT = "init"
    REPLAY_EXISTING = "replay_existing"
    STREAM_PRELUDE = "stream_prelude"
    DRAIN_QUEUE = "drain_queue"
    FINALIZE = "finalize"


class HeaderGraphBuilder:
    """Generates the shared declaration header (JVMTypes.d.ts).

    Classes are discovered through a worklist: each declaration emitted may
    queue more types (supertypes, field, parameter and return types), and the
    queue is drained until empty. A descriptor is queued at most once.
    """

    def __init__(self, resolver: ClassResolver, runtime_path: str = "doppiojvm",
                 force_headers: Iterable[str] = ()):
        self.resolver = resolver
        self.runtime_path = runtime_path
        self.force_headers = list(force_headers)
        self.type_mapper = TypeMapper()
        self.phase = Phase.INIT
        self.header_count = 0
        self._queued: set[str] = set()
        self._queue: list[ClassMetadata] = []
        self._declarations: dict[str, str] = {}

    def generate(self, stream: TextIO, existing: Optional[str] = None,
                 seeds: Iterable[str] = ()) -> int:
        """Write the full header to stream; return the number of classes declared"""
        self.phase = Phase.REPLAY_EXISTING
        if existing:
            self._replay_existing(existing)

        self.phase = Phase.STREAM_PRELUDE
        self._stream_prelude(stream)
        self._enqueue(THROWABLE)
        for name in self.force_headers:
            self._enqueue(class_name_to_descriptor(name))
        for desc in seeds:
            self._enqueue(desc)

        self.phase = Phase.DRAIN_QUEUE
        self._drain_queue()

        self.phase = Phase.FINALIZE
        self._finalize(stream)
        logger.info("Processed %d classes.", self.header_count)
        return self.header_count

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _replay_existing(self, text: str):
        if not text.startswith(f"{HEADER_FORMAT_MARKER}{HEADER_FORMAT_VERSION}\n"):
            logger.debug("Existing header has an unknown format; regenerating from scratch")
            return

        for match in _DECLARATION.finditer(text):
            name = match.group(1)
            if name == TypeMapper.ARRAY_TYPE:
                continue
            try:
                self._enqueue(TypeMapper.from_output_type(name))
            except (AmbiguousTypeError, ResolutionError) as e:
                logger.debug("Dropping stale declaration %s: %s", name, e)

    def _stream_prelude(self, stream: TextIO):
        lines = [
            f"{HEADER_FORMAT_MARKER}{HEADER_FORMAT_VERSION}",
            "// TypeScript declaration file for JVM types. Automatically generated by nativestub.",
            f"import DoppioJVM = require('{self.runtime_path}');",
            "import JVMThread = DoppioJVM.VM.Threading.JVMThread;",
            "import Long = DoppioJVM.VM.Long;",
            "import ClassData = DoppioJVM.VM.ClassFile.ClassData;",
            "import ArrayClassData = DoppioJVM.VM.ClassFile.ArrayClassData;",
            "import ReferenceClassData = DoppioJVM.VM.ClassFile.ReferenceClassData;",
            "import Monitor = DoppioJVM.VM.Monitor;",
            "import ClassLoader = DoppioJVM.VM.ClassFile.ClassLoader;",
            "import Interfaces = DoppioJVM.VM.Interfaces;",
            "",
            "declare module JVMTypes {",
        ]
        lines.extend(self._array_definition())
        lines.extend(self._misc_definitions())
        stream.write("\n".join(lines) + "\n")
        self._enqueue_references()

    def _drain_queue(self):
        while self._queue:
            cls = self._queue.pop()
            self._declarations[self._name(cls.descriptor)] = self._declaration(cls)
            self._enqueue_references()

    def _finalize(self, stream: TextIO):
        for name in sorted(self._declarations):
            stream.write(self._declarations[name])
        stream.write("}\nexport = JVMTypes;\n")

    # ------------------------------------------------------------------
    # Worklist
    # ------------------------------------------------------------------

    def _enqueue(self, descriptor: str):
        """Queue a type for declaration; primitives and repeats are ignored"""
        while descriptor.startswith("["):
            descriptor = descriptor[1:]
        if descriptor in self._queued or TypeMapper.is_primitive(descriptor):
            return
        cls = self.resolver.resolve_class(descriptor)
        self._queued.add(descriptor)
        self._queue.append(cls)

    def _enqueue_references(self):
        for desc in self.type_mapper.take_references():
            self._enqueue(desc)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _name(self, descriptor: str) -> str:
        return self.type_mapper.to_output_type(descriptor, qualified=False)

    def _declaration(self, cls: ClassMetadata) -> str:
        logger.debug("[%d] Processing header for %s...", self.header_count, cls.internal_name)
        self.header_count += 1

        interfaces = [self._name(d) for d in cls.interface_descriptors]
        if cls.is_interface:
            head = f"  export interface {self._name(cls.descriptor)}"
            if interfaces:
                head += f" extends {', '.join(interfaces)}"
        else:
            head = f"  export class {self._name(cls.descriptor)}"
            if cls.super_descriptor is not None:
                head += f" extends {self._name(cls.super_descriptor)}"
            if interfaces:
                head += f" implements {', '.join(interfaces)}"

        lines = [head + " {"]
        for name, ts_type in cls.injected_fields.items():
            lines.append(f"    public {name}: {ts_type};")
        for name, ts_type in cls.injected_methods.items():
            lines.append(f"    public {name}{ts_type};")
        for name, ts_type in cls.injected_static_methods.items():
            lines.append(f"    public static {name}{ts_type};")
        if not cls.is_interface:
            for f in cls.fields:
                lines.append(self._field(cls, f))

        emitted: set[str] = set()
        methods = cls.methods + cls.miranda_and_default_methods() + cls.uninherited_default_methods()
        for m in methods:
            lines.extend(self._method(m, emitted))
        lines.append("  }")
        return "\n".join(lines) + "\n"

    def _field(self, cls: ClassMetadata, f: FieldInfo) -> str:
        modifiers = "public static" if f.is_static else "public"
        return f'    {modifiers} "{cls.internal_name}/{f.name}": {self._name(f.descriptor)};'

    def _method(self, m: MethodInfo, emitted: set[str]) -> list[str]:
        """Signature lines for one method, skipping any already in this block"""
        if m.owner_is_interface:
            if m.is_static:
                return []
            candidates = [f'    "{m.signature}"']
        else:
            modifiers = "public static" if m.is_static else "public"
            candidates = [] if m.non_virtual_only else [f'    {modifiers} "{m.signature}"']
            candidates.append(f'    {modifiers} "{m.full_signature}"')

        sig = self._method_type(m)
        lines = []
        for head in candidates:
            if head in emitted:
                continue
            emitted.add(head)
            lines.append(f"{head}{sig};")
        return lines

    def _method_type(self, m: MethodInfo) -> str:
        if m.parameter_types:
            # long and double occupy two argument slots; the second is always null
            slots = []
            for t in m.parameter_types:
                slots.append(self._name(t))
                if t in ("J", "D"):
                    slots.append("any")
            args = f"args: [{', '.join(slots)}]"
        else:
            args = "args: {}[]"

        cb = "e?: java_lang_Throwable"
        if m.return_type != "V":
            cb += f", rv?: {self._name(m.return_type)}"
        return f"(thread: JVMThread, {args}, cb?: ({cb}) => void): void"

    def _array_definition(self) -> list[str]:
        """Generic JVM array type"""
        base = self._name("Ljava/lang/Object;")
        return [
            f"  export class {TypeMapper.ARRAY_TYPE}<T> extends {base} {{",
            "    /**",
            "     * NOTE: Our arrays are either JS arrays, or TypedArrays for primitive",
            "     * types.",
            "     */",
            "    public array: T[];",
            "    public getClass(): ArrayClassData<T>;",
            "    /**",
            "     * Create a new JVM array of this type that starts at start, and ends at",
            "     * end. End defaults to the end of the array.",
            "     */",
            f"    public slice(start: number, end?: number): {TypeMapper.ARRAY_TYPE}<T>;",
            "  }",
        ]

    def _misc_definitions(self) -> list[str]:
        obj = self._name("Ljava/lang/Object;")
        return [
            "  // Basic, valid JVM types.",
            f"  export type BasicType = number | {obj} | Long;",
            "  export type JVMFunction = (thread: JVMThread, args: BasicType[], "
            f"cb: (e?: {TypeMapper.NAMESPACE}.{obj}, rv?: BasicType) => void) => void;",
        ]
