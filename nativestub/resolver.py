"""Descriptor resolution with a per-run cache"""

import logging
from typing import Union

from .classfile import ClassFileParser
from .classpath import Classpath
from .errors import ClassFormatError, ResolutionError
from .types import (
    ArrayClassMetadata,
    ClassMetadata,
    PrimitiveClassMetadata,
    PRIMITIVE_DESCRIPTORS,
    descriptor_to_internal,
)

logger = logging.getLogger(__name__)

AnyClassMetadata = Union[ClassMetadata, ArrayClassMetadata, PrimitiveClassMetadata]


class ClassResolver:
    """Turns descriptors into class metadata, loading class files on demand.

    Each descriptor is resolved once; the cached object is returned for the
    rest of the run.
    """

    def __init__(self, classpath: Classpath):
        self.classpath = classpath
        self._cache: dict[str, AnyClassMetadata] = {}

    def __contains__(self, descriptor: str) -> bool:
        return descriptor in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def resolve(self, descriptor: str) -> AnyClassMetadata:
        cached = self._cache.get(descriptor)
        if cached is not None:
            return cached
        if not descriptor:
            raise ResolutionError(descriptor, message="empty descriptor")

        kind = descriptor[0]
        if kind == "L":
            return self._resolve_reference(descriptor)
        if kind == "[":
            if len(descriptor) < 2:
                raise ResolutionError(descriptor, message="array descriptor without component")
            rv = ArrayClassMetadata(descriptor[1:])
        elif descriptor in PRIMITIVE_DESCRIPTORS:
            rv = PrimitiveClassMetadata(descriptor)
        else:
            raise ResolutionError(descriptor, message="not a type descriptor")
        self._cache[descriptor] = rv
        return rv

    def resolve_class(self, descriptor: str) -> ClassMetadata:
        """Resolve a descriptor that must name a reference class"""
        rv = self.resolve(descriptor)
        if not isinstance(rv, ClassMetadata):
            raise ResolutionError(descriptor, message="not a reference type")
        return rv

    def _resolve_reference(self, descriptor: str) -> ClassMetadata:
        # Supertypes are loaded through an explicit stack rather than by
        # recursion, so hierarchy depth is not limited by the interpreter stack.
        loaded: list[ClassMetadata] = []
        pending = [descriptor]
        try:
            while pending:
                desc = pending.pop()
                if desc in self._cache:
                    continue
                cls = self._load(desc)
                # Cached before the supertypes so diamonds and cycles find it
                self._cache[desc] = cls
                loaded.append(cls)
                pending.extend(reversed(cls.interface_descriptors))
                if cls.super_descriptor is not None:
                    pending.append(cls.super_descriptor)
        except ResolutionError:
            # Nothing from a failed walk stays cached half-resolved
            for cls in loaded:
                del self._cache[cls.descriptor]
            raise

        for cls in loaded:
            superclass = None
            if cls.super_descriptor is not None:
                superclass = self._cached_class(cls.super_descriptor)
            interfaces = [self._cached_class(d) for d in cls.interface_descriptors]
            cls.resolved(superclass, interfaces)
        return self._cached_class(descriptor)

    def _cached_class(self, descriptor: str) -> ClassMetadata:
        cls = self._cache[descriptor]
        if not isinstance(cls, ClassMetadata):
            raise ResolutionError(descriptor, message="not a reference type")
        return cls

    def _load(self, descriptor: str) -> ClassMetadata:
        if len(descriptor) < 3 or not descriptor.startswith("L") or not descriptor.endswith(";"):
            raise ResolutionError(descriptor, message="malformed reference descriptor")
        type_name = descriptor_to_internal(descriptor)

        try:
            data = self.classpath.load_class(type_name)
            if data is None:
                raise ResolutionError(descriptor, message=f"unable to find class {type_name}")
            cls = ClassFileParser(data).parse()
        except ClassFormatError as e:
            raise ResolutionError(descriptor, e) from e
        if cls.internal_name != type_name:
            raise ResolutionError(
                descriptor, message=f"class file declares {cls.internal_name} instead"
            )
        logger.debug("Loaded %s", type_name)
        return cls
