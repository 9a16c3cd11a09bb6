"""
Native Method Stub Generator Package

Reads JVM class files and generates:
  1. JavaScript templates for native methods
  2. TypeScript templates for native methods
  3. A TypeScript declaration header (JVMTypes.d.ts) covering every JVM type
     reachable from the generated templates
"""

from .types import AccessFlags, FieldInfo, MethodInfo, ClassMetadata, ArrayClassMetadata, PrimitiveClassMetadata
from .errors import (
    NativeStubError, ResolutionError, ConfigurationError, AmbiguousTypeError,
    ClassFormatError, ArtifactWriteError,
)
from .classfile import ClassFileParser, parse_method_descriptor
from .classpath import Classpath, TriState
from .resolver import ClassResolver
from .type_mapper import TypeMapper
from .templates import StubTemplate, JavaScriptTemplate, TypeScriptTemplate
from .header_generator import HeaderGraphBuilder
from .config import GeneratorConfig
from .generator import NativeStubGenerator

__all__ = [
    'AccessFlags', 'FieldInfo', 'MethodInfo', 'ClassMetadata', 'ArrayClassMetadata', 'PrimitiveClassMetadata',
    'NativeStubError', 'ResolutionError', 'ConfigurationError', 'AmbiguousTypeError',
    'ClassFormatError', 'ArtifactWriteError',
    'ClassFileParser', 'parse_method_descriptor', 'Classpath', 'TriState',
    'ClassResolver', 'TypeMapper',
    'StubTemplate', 'JavaScriptTemplate', 'TypeScriptTemplate', 'HeaderGraphBuilder',
    'GeneratorConfig', 'NativeStubGenerator',
]
