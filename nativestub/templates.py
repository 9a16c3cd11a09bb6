"""Stub templates - emit native method placeholders in JavaScript or TypeScript"""

from abc import ABC, abstractmethod
from typing import TextIO

from .type_mapper import TypeMapper
from .types import internal_to_descriptor

LINKAGE_ERROR = "Ljava/lang/UnsatisfiedLinkError;"
NOT_IMPLEMENTED = "Native method not implemented."


class StubTemplate(ABC):
    """Output dialect for native method stubs.

    ``class_start``/``class_end`` are only called for classes that have at
    least one native method.
    """

    extension: str = ""

    @abstractmethod
    def file_start(self, stream: TextIO) -> None:
        ...

    @abstractmethod
    def file_end(self, stream: TextIO) -> None:
        ...

    @abstractmethod
    def class_start(self, stream: TextIO, internal_name: str) -> None:
        ...

    @abstractmethod
    def class_end(self, stream: TextIO, internal_name: str) -> None:
        ...

    @abstractmethod
    def method(
        self,
        stream: TextIO,
        class_descriptor: str,
        signature: str,
        is_static: bool,
        parameter_types: list[str],
        return_type: str,
    ) -> None:
        ...


class JavaScriptTemplate(StubTemplate):
    """Untyped stubs in one registerNatives object"""

    extension = "js"

    def __init__(self):
        self._first_class = True
        self._first_method = True

    def file_start(self, stream: TextIO) -> None:
        stream.write(
            "// This entire object is exported. Feel free to define private helper functions above it.\n"
            "registerNatives({"
        )

    def file_end(self, stream: TextIO) -> None:
        stream.write("\n});\n")

    def class_start(self, stream: TextIO, internal_name: str) -> None:
        self._first_method = True
        if self._first_class:
            self._first_class = False
        else:
            stream.write(",\n")
        stream.write(f"\n  '{internal_name}': {{\n")

    def class_end(self, stream: TextIO, internal_name: str) -> None:
        stream.write("\n\n  }")

    def method(self, stream, class_descriptor, signature, is_static, parameter_types, return_type) -> None:
        args = ["thread"]
        if not is_static:
            args.append("javaThis")
        args.extend(f"arg{i}" for i in range(len(parameter_types)))

        if self._first_method:
            self._first_method = False
        else:
            stream.write(",\n")
        stream.write(f"\n    '{signature}': function({', '.join(args)}) {{")
        stream.write(f"\n      thread.throwNewException('{LINKAGE_ERROR}', '{NOT_IMPLEMENTED}');")
        stream.write("\n    }")


class TypeScriptTemplate(StubTemplate):
    """Typed stubs, one TypeScript class per JVM class.

    Every type used in a stub signature is recorded by ``type_mapper`` so the
    declaration header can cover it.
    """

    extension = "ts"

    def __init__(self, runtime_path: str = "doppiojvm", header_module: str = "./JVMTypes"):
        self.runtime_path = runtime_path
        self.header_module = header_module
        self.type_mapper = TypeMapper()
        self.classes_seen: list[str] = []

    def file_start(self, stream: TextIO) -> None:
        lines = [
            f'import JVMTypes = require("{self.header_module}");',
            f"import DoppioJVM = require('{self.runtime_path}');",
            "import JVMThread = DoppioJVM.VM.Threading.JVMThread;",
            "import Long = DoppioJVM.VM.Long;",
            "declare var registerNatives: (natives: any) => void;",
            "",
        ]
        stream.write("\n".join(lines))

    def file_end(self, stream: TextIO) -> None:
        entries = [
            f"\n  '{internal_name}': {self._class_name(internal_name)}"
            for internal_name in self.classes_seen
        ]
        stream.write("\n// Export line. This is what DoppioJVM sees.\nregisterNatives({")
        stream.write(",".join(entries))
        stream.write("\n});\n")

    def class_start(self, stream: TextIO, internal_name: str) -> None:
        self.classes_seen.append(internal_name)
        stream.write(f"\nclass {self._class_name(internal_name)} {{\n")

    def class_end(self, stream: TextIO, internal_name: str) -> None:
        stream.write("\n}\n")

    def method(self, stream, class_descriptor, signature, is_static, parameter_types, return_type) -> None:
        to_ts = self.type_mapper.to_output_type
        args = ["thread: JVMThread"]
        if not is_static:
            args.append(f"javaThis: {to_ts(class_descriptor)}")
        args.extend(f"arg{i}: {to_ts(t)}" for i, t in enumerate(parameter_types))
        ret_type = to_ts(return_type)

        stream.write(f"\n  public static '{signature}'({', '.join(args)}): {ret_type} {{\n")
        stream.write(f"    thread.throwNewException('{LINKAGE_ERROR}', '{NOT_IMPLEMENTED}');\n")
        placeholder = self.default_value(ret_type)
        if placeholder is not None:
            stream.write(f"    return {placeholder};\n")
        stream.write("  }\n")

    @staticmethod
    def default_value(ts_type: str):
        """Placeholder return value for a TypeScript return type"""
        if ts_type == TypeMapper.VOID_TYPE:
            return None
        if ts_type == TypeMapper.NUMBER_TYPE:
            return "0"
        return "null"

    def referenced_descriptors(self) -> list[str]:
        return self.type_mapper.take_references()

    def _class_name(self, internal_name: str) -> str:
        return self.type_mapper.to_output_type(internal_to_descriptor(internal_name), qualified=False)
