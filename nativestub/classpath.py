"""Class search path: directories and jar/zip archives"""

import logging
import os
import zipfile
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from .errors import ClassFormatError, ConfigurationError

logger = logging.getLogger(__name__)


class TriState(Enum):
    TRUE = "true"
    FALSE = "false"
    INDETERMINATE = "indeterminate"


class ResourceKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"


class ClasspathItem(ABC):
    """One search location. Resource paths are '/'-separated and relative."""

    def __init__(self, path: Path):
        self.path = path

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"

    def open(self) -> None:
        """Load whatever the location needs before synchronous lookups"""

    def close(self) -> None:
        pass

    @abstractmethod
    def has_class(self, type_name: str) -> TriState:
        ...

    @abstractmethod
    def try_load_class(self, type_name: str) -> Optional[bytes]:
        ...

    @abstractmethod
    def stat(self, resource: str) -> Optional[ResourceKind]:
        ...

    @abstractmethod
    def listdir(self, resource: str) -> Optional[list[str]]:
        ...


class DirectoryClasspathItem(ClasspathItem):
    """Unindexed directory; presence is only known by trying to read"""

    def _resolve(self, resource: str) -> Path:
        return self.path.joinpath(*PurePosixPath(resource).parts)

    def has_class(self, type_name: str) -> TriState:
        return TriState.INDETERMINATE

    def try_load_class(self, type_name: str) -> Optional[bytes]:
        try:
            return self._resolve(f"{type_name}.class").read_bytes()
        except OSError:
            return None

    def stat(self, resource: str) -> Optional[ResourceKind]:
        target = self._resolve(resource)
        if target.is_dir():
            return ResourceKind.DIRECTORY
        if target.is_file():
            return ResourceKind.FILE
        return None

    def listdir(self, resource: str) -> Optional[list[str]]:
        try:
            return sorted(os.listdir(self._resolve(resource)))
        except OSError:
            return None


class JarClasspathItem(ClasspathItem):
    """Jar or zip archive, indexed when opened"""

    def __init__(self, path: Path):
        super().__init__(path)
        self._zip: Optional[zipfile.ZipFile] = None
        self._files: set[str] = set()
        self._dirs: dict[str, set[str]] = {}

    def open(self) -> None:
        if self._zip is not None:
            return
        try:
            self._zip = zipfile.ZipFile(self.path)
        except (OSError, zipfile.BadZipFile) as e:
            raise ConfigurationError(f"Unable to open archive {self.path}: {e}") from e

        for name in self._zip.namelist():
            parts = [p for p in name.split("/") if p]
            if not parts:
                continue
            if not name.endswith("/"):
                self._files.add("/".join(parts))
            # Register every parent directory, archives often omit explicit entries
            for depth in range(len(parts)):
                self._dirs.setdefault("/".join(parts[:depth]), set()).add(parts[depth])
            if name.endswith("/"):
                self._dirs.setdefault("/".join(parts), set())
        logger.debug("Indexed %s (%d files)", self.path, len(self._files))

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def has_class(self, type_name: str) -> TriState:
        if self._zip is None:
            return TriState.INDETERMINATE
        return TriState.TRUE if f"{type_name}.class" in self._files else TriState.FALSE

    def try_load_class(self, type_name: str) -> Optional[bytes]:
        if self._zip is None:
            self.open()
        name = f"{type_name}.class"
        if name not in self._files:
            return None
        try:
            return self._zip.read(name)
        except (OSError, zipfile.BadZipFile) as e:
            raise ClassFormatError(f"Unable to read {name} from {self.path}: {e}") from e

    def stat(self, resource: str) -> Optional[ResourceKind]:
        key = resource.strip("/")
        if key in self._files:
            return ResourceKind.FILE
        if key in self._dirs:
            return ResourceKind.DIRECTORY
        return None

    def listdir(self, resource: str) -> Optional[list[str]]:
        entries = self._dirs.get(resource.strip("/"))
        if entries is None:
            return None
        return sorted(entries)


class Classpath:
    """Ordered list of search locations.

    Use as a context manager: archives are indexed on entry so that every
    later lookup is synchronous, and closed on exit.
    """

    ARCHIVE_SUFFIXES = (".jar", ".zip")

    def __init__(self, items: Iterable[ClasspathItem]):
        self.items = list(items)

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> "Classpath":
        items: list[ClasspathItem] = []
        for raw in paths:
            if not raw:
                continue
            path = Path(raw)
            if path.suffix.lower() in cls.ARCHIVE_SUFFIXES:
                items.append(JarClasspathItem(path))
            elif path.is_dir():
                items.append(DirectoryClasspathItem(path))
            else:
                logger.warning("Ignoring missing classpath entry %s", raw)
        return cls(items)

    def open(self) -> "Classpath":
        for item in self.items:
            item.open()
        return self

    def close(self) -> None:
        for item in self.items:
            item.close()

    def __enter__(self) -> "Classpath":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def load_class(self, type_name: str) -> Optional[bytes]:
        """Bytes of type_name.class from the first location that has it"""
        for item in self.items:
            if item.has_class(type_name) is TriState.FALSE:
                continue
            data = item.try_load_class(type_name)
            if data is not None:
                return data
        return None
