"""
Runtime configuration for the dispatcher.

Values come from, in order of use:
- explicit `ProcessorConfig(...)` construction,
- environment variables (`config_from_env`),
- a YAML mapping on disk (`load_config`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml


ENV_REQUIRE_SIGNERS = "LEDGER_REQUIRE_SIGNERS"
ENV_MAX_INSTRUCTION_BYTES = "LEDGER_MAX_INSTRUCTION_BYTES"


@dataclass(frozen=True)
class ProcessorConfig:
    # Depositor, withdrawal recipient and ChangeOwner caller must carry a
    # verified signature. Disable only for hosts that authorize callers elsewhere.
    require_signers: bool = True

    # DoS limit applied before any decoding.
    max_instruction_bytes: int = 1024

    def __post_init__(self) -> None:
        if not isinstance(self.require_signers, bool):
            raise TypeError("require_signers must be a bool")
        n = self.max_instruction_bytes
        if not isinstance(n, int) or isinstance(n, bool) or n < 33:
            raise ValueError("max_instruction_bytes must be an int >= 33")


def _bool_env(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return bool(default)
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _int_env(name: str, *, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        return int(raw.strip(), 10)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def config_from_env(base: Optional[ProcessorConfig] = None) -> ProcessorConfig:
    base = base or ProcessorConfig()
    return ProcessorConfig(
        require_signers=_bool_env(ENV_REQUIRE_SIGNERS, default=base.require_signers),
        max_instruction_bytes=_int_env(ENV_MAX_INSTRUCTION_BYTES, default=base.max_instruction_bytes),
    )


def config_from_mapping(obj: Mapping[str, Any]) -> ProcessorConfig:
    if not isinstance(obj, Mapping):
        raise ValueError("config must be a mapping")
    known = {f.name for f in fields(ProcessorConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(map(str, unknown))}")
    return ProcessorConfig(**dict(obj))


def load_config(path: Union[str, Path]) -> ProcessorConfig:
    """Load a `ProcessorConfig` from a YAML file; an empty file yields defaults."""
    text = Path(path).read_text(encoding="utf-8")
    obj = yaml.safe_load(text)
    if obj is None:
        return ProcessorConfig()
    return config_from_mapping(obj)
