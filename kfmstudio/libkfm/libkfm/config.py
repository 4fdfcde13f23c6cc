"""libkfm.config

Runtime knobs. There is no config file: values come from the environment and
command line flags override them.

    KFM_LOG_LEVEL       DEBUG / INFO / WARNING / ERROR (default INFO)
    KFM_BYTE_ORDER      little / big: force the byte order of written binaries
                        (default: keep the order recorded in the source header)
    KFM_ATOMIC_PATCH    1/true: a failing patch batch leaves the file untouched
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUE = ("1", "true", "yes", "on")
BYTE_ORDERS = ("little", "big")


def _flag(env: Mapping[str, str], key: str) -> bool:
    return env.get(key, "").strip().lower() in _TRUE


@dataclass
class ToolConfig:
    log_level: str = "INFO"
    byte_order: Optional[str] = None
    atomic_patch: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ToolConfig":
        env = os.environ if env is None else env
        byte_order = (env.get("KFM_BYTE_ORDER") or "").strip().lower() or None
        if byte_order is not None and byte_order not in BYTE_ORDERS:
            raise ValueError(f"KFM_BYTE_ORDER must be one of {BYTE_ORDERS}, got {byte_order!r}")
        return cls(
            log_level=(env.get("KFM_LOG_LEVEL") or "INFO").upper(),
            byte_order=byte_order,
            atomic_patch=_flag(env, "KFM_ATOMIC_PATCH"),
        )
