"""
ElfProbe Configuration
=======================

Settings live in three TOML tables, each mapped onto a slotted dataclass::

    [global]                 # GlobalConfig
    log_level = "INFO"
    log_file = "elfprobe.log"
    log_json = true

    [elfprobe]               # ElfProbeConfig
    strict_header = true
    string_chunk_size = 64

    [shell]                  # ShellConfig
    prompt = "ELF> "
    require_tty = false

Absent keys keep their defaults and unknown keys are skipped, so one file
can be shared across versions.

References:
    - TOML v1.0.0. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, TypeVar

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

#: Looked up in the working directory when no ``--config`` is given.
DEFAULT_CONFIG_NAME = "elfprobe.toml"

_Section = TypeVar("_Section")


@dataclass(slots=True)
class ElfProbeConfig:
    """Parser settings.

    Attributes:
        strict_header:     Reject files whose magic, class or data encoding
                           is not little-endian ELF64.
        string_chunk_size: Bytes fetched per read while scanning a string
                           table for the terminating NUL.
        hexdump_width:     Bytes per hex dump line.
        default_path:      File the shell opens when no path is given.
    """

    strict_header: bool = True
    string_chunk_size: int = 64
    hexdump_width: int = 16
    default_path: str = "./sample"


@dataclass(slots=True)
class ShellConfig:
    """Interactive shell settings.

    ``require_tty`` makes the shell refuse piped input; turn it off to
    drive the shell from a script.
    """

    prompt: str = "ELF> "
    require_tty: bool = True
    max_line_length: int = 1024


@dataclass(slots=True)
class GlobalConfig:
    log_level: str = "WARNING"
    log_file: Optional[str] = None
    log_json: bool = False
    debug: bool = False


@dataclass(slots=True)
class ProbeConfig:
    """All settings, as loaded from one TOML file.

    Usage:
        >>> config = ProbeConfig.load("elfprobe.toml")
        >>> config.elfprobe.string_chunk_size
        64
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    elfprobe: ElfProbeConfig = field(default_factory=ElfProbeConfig)
    shell: ShellConfig = field(default_factory=ShellConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> ProbeConfig:
        """Read *path*, or ``./elfprobe.toml`` when *path* is ``None``.

        Without an explicit *path* a missing file simply means defaults.

        Raises:
            FileNotFoundError: If an explicit *path* does not exist.
            tomllib.TOMLDecodeError: If the file is not valid TOML.
        """
        if path is None:
            candidate = Path.cwd() / DEFAULT_CONFIG_NAME
            return cls.from_dict(_read_toml(candidate)) if candidate.is_file() else cls()

        config_path = Path(path)
        if not config_path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        return cls.from_dict(_read_toml(config_path))

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ProbeConfig:
        """Build from already-parsed TOML tables."""
        return cls(
            global_settings=_section(GlobalConfig, raw.get("global")),
            elfprobe=_section(ElfProbeConfig, raw.get("elfprobe")),
            shell=_section(ShellConfig, raw.get("shell")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def _section(kind: type[_Section], table: Optional[dict[str, Any]]) -> _Section:
    known = {f.name for f in fields(kind)}  # type: ignore[arg-type]
    return kind(**{k: v for k, v in (table or {}).items() if k in known})

