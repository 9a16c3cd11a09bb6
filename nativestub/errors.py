"""Exception types raised by the stub generator"""

from typing import Optional


class NativeStubError(Exception):
    """Base class for all generator failures"""


class ClassFormatError(NativeStubError):
    """Raised when class-file bytes are malformed or cannot be read"""


class ResolutionError(NativeStubError):
    """A descriptor could not be turned into class metadata"""

    def __init__(self, descriptor: str, cause: Optional[BaseException] = None, message: str = ""):
        self.descriptor = descriptor
        self.cause = cause
        detail = message or (str(cause) if cause is not None else "class not found")
        super().__init__(f"Unable to resolve {descriptor}: {detail}")


class ConfigurationError(NativeStubError):
    """Invalid command line or configuration file settings"""


class AmbiguousTypeError(NativeStubError):
    """An output type name does not identify a single JVM reference type"""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"Ambiguous output type '{type_name}' has no unique descriptor")


class ArtifactWriteError(NativeStubError):
    """A generated file could not be written"""

    def __init__(self, path, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Unable to write {path}: {cause}")
