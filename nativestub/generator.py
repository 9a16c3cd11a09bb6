"""Stub Generator - expands a class or package into stub and header artifacts"""

import io
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Optional, TextIO

from .classpath import Classpath, ResourceKind
from .config import GeneratorConfig
from .errors import ArtifactWriteError, ConfigurationError, ResolutionError
from .header_generator import HEADER_FILENAME, HeaderGraphBuilder
from .resolver import ClassResolver
from .templates import JavaScriptTemplate, StubTemplate, TypeScriptTemplate
from .types import ClassMetadata, internal_to_descriptor

logger = logging.getLogger(__name__)


def file_to_descriptor(path: str) -> str:
    """java/lang/String.class => Ljava/lang/String;"""
    return internal_to_descriptor(path[:-len(".class")])


class NativeStubGenerator:
    """Generates the stub file (and, for TypeScript, the header) for one target.

    ``generate`` renders every artifact in memory and returns them; ``write``
    puts them on disk. A failure in either leaves the output directory as it
    was before the run, apart from files already written by ``write``.
    """

    def __init__(self, config: GeneratorConfig, classpath: Classpath):
        self.config = config.validate()
        self.classpath = classpath
        self.resolver = ClassResolver(classpath)
        self.output_dir = Path(config.output_dir)

    def make_template(self) -> StubTemplate:
        if self.config.dialect == "ts":
            return TypeScriptTemplate(self._runtime_module())
        return JavaScriptTemplate()

    def find_classes(self, target_path: str) -> list[str]:
        """Descriptors of the class or every class under the package target_path"""
        target_path = target_path.strip("/")
        items = []
        is_dir = False
        for item in self.classpath.items:
            kind = item.stat(target_path)
            if kind is None:
                kind = item.stat(f"{target_path}.class")
            if kind is None:
                continue
            is_dir = kind is ResourceKind.DIRECTORY
            items.append(item)
        if not items:
            raise ResolutionError(target_path, message=f"unable to find resource {target_path}")

        if not is_dir:
            if target_path.endswith(".class"):
                return [file_to_descriptor(target_path)]
            return [internal_to_descriptor(target_path)]

        found: dict[str, None] = {}
        dir_stack = [target_path]
        while dir_stack:
            directory = dir_stack.pop()
            for item in items:
                listing = item.listdir(directory)
                if listing is None:
                    continue
                for name in listing:
                    entry = str(PurePosixPath(directory, name))
                    if name.endswith(".class"):
                        found.setdefault(file_to_descriptor(entry), None)
                    else:
                        dir_stack.append(entry)
        return sorted(found)

    def process_class(self, stream: TextIO, template: StubTemplate, cls: ClassMetadata) -> bool:
        """Emit stubs for the native methods of cls; False if it has none"""
        natives = cls.native_methods()
        if not natives:
            logger.debug("Skipping %s: no native methods", cls.internal_name)
            return False

        template.class_start(stream, cls.internal_name)
        for m in natives:
            template.method(stream, cls.descriptor, m.signature, m.is_static,
                            m.parameter_types, m.return_type)
        template.class_end(stream, cls.internal_name)
        return True

    def generate(self, class_name: str) -> dict[Path, str]:
        """Render the artifacts for a class or package name"""
        if class_name.endswith(".class"):
            class_name = class_name[:-len(".class")]
        target_path = class_name.replace(".", "/")
        target_name = class_name.replace("/", "_").replace(".", "_")
        template = self.make_template()

        stream = io.StringIO()
        template.file_start(stream)
        processed = []
        for desc in self.find_classes(target_path):
            cls = self.resolver.resolve_class(desc)
            self.process_class(stream, template, cls)
            processed.append(desc)
        template.file_end(stream)

        files = {self.output_dir / f"{target_name}.{template.extension}": stream.getvalue()}

        if self.config.header_mode and isinstance(template, TypeScriptTemplate):
            header_path = self.output_dir / HEADER_FILENAME
            seeds = processed + template.referenced_descriptors()
            builder = HeaderGraphBuilder(self.resolver, self._runtime_module(), self.config.force_headers)
            header = io.StringIO()
            builder.generate(header, self._read_existing(header_path), seeds)
            files[header_path] = header.getvalue()

        return files

    def prepare_output_dir(self) -> Path:
        if self.output_dir.exists() and not self.output_dir.is_dir():
            raise ConfigurationError(f"Output path {self.output_dir} is not a directory")
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Unable to create output directory {self.output_dir}: {e}") from e
        if not os.access(self.output_dir, os.W_OK):
            raise ConfigurationError(f"Output directory {self.output_dir} is not writable")
        return self.output_dir

    def write(self, files: dict[Path, str]) -> list[Path]:
        written = []
        for path, content in files.items():
            try:
                path.write_text(content, encoding="utf-8")
            except OSError as e:
                raise ArtifactWriteError(path, e) from e
            written.append(path)
        return written

    def _runtime_module(self) -> str:
        """Runtime module path as seen from the output directory"""
        runtime = self.config.runtime_path
        if runtime.startswith(".") or os.path.isabs(runtime):
            rel = Path(os.path.relpath(Path(runtime).resolve(), self.output_dir.resolve())).as_posix()
            return rel if rel.startswith(".") else f"./{rel}"
        return runtime

    @staticmethod
    def _read_existing(path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
