"""Generator configuration: dataclass defaults, TOML loading and validation"""

import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigurationError

DIALECTS = ("js", "ts")


@dataclass
class GeneratorConfig:
    """Settings for one generator run.

    ``headers`` left as ``None`` means "on for TypeScript, off otherwise".
    ``bootclasspath`` entries are searched before ``classpath`` entries.

    Usage:
        >>> config = GeneratorConfig.load("nativestub.toml")
        >>> config.dialect
        'ts'
    """

    classpath: list[str] = field(default_factory=lambda: ["."])
    bootclasspath: list[str] = field(default_factory=list)
    output_dir: str = "."
    dialect: str = "js"
    headers: Optional[bool] = None
    runtime_path: str = "doppiojvm"
    force_headers: list[str] = field(default_factory=list)
    log_level: str = "INFO"

    @classmethod
    def load(cls, path: str | Path) -> "GeneratorConfig":
        """Read the [nativestub] table of a TOML file.

        Keys the dataclass does not declare are ignored.
        """
        config_path = Path(path)
        try:
            with open(config_path, "rb") as fh:
                raw: dict[str, Any] = tomllib.load(fh)
        except OSError as e:
            raise ConfigurationError(f"Unable to read configuration file {config_path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid configuration file {config_path}: {e}") from e

        section = raw.get("nativestub", {})
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in section.items() if k in valid_keys})

    @property
    def header_mode(self) -> bool:
        if self.headers is None:
            return self.dialect == "ts"
        return self.headers

    @property
    def search_paths(self) -> list[str]:
        return list(self.bootclasspath) + list(self.classpath)

    def validate(self) -> "GeneratorConfig":
        for name in ("classpath", "bootclasspath", "force_headers"):
            value = getattr(self, name)
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigurationError(f"'{name}' must be a list of strings")
        for name in ("output_dir", "dialect", "runtime_path", "log_level"):
            if not isinstance(getattr(self, name), str):
                raise ConfigurationError(f"'{name}' must be a string")
        if self.headers is not None and not isinstance(self.headers, bool):
            raise ConfigurationError("'headers' must be true or false")
        if self.dialect not in DIALECTS:
            raise ConfigurationError(
                f"Unknown output dialect '{self.dialect}' (expected one of {', '.join(DIALECTS)})"
            )
        if self.header_mode and self.dialect != "ts":
            raise ConfigurationError("Declaration headers are only generated for TypeScript output")
        if not self.search_paths:
            raise ConfigurationError("No class search path configured")
        return self

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
