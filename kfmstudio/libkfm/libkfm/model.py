from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Tuple


# -----------------------------
# Transition kinds
#
# The integer value is the on-disk type code. The snake_case name is the
# spelling used by the text form and patch files.
# -----------------------------

class TransitionType(IntEnum):
    BLEND = 0
    MORPH = 1
    CROSSFADE = 2
    CHAIN_ANIMATION = 3
    DEFAULT_SYNC = 4
    DEFAULT_NON_SYNC = 5

    @property
    def text(self) -> str:
        return self.name.lower()

    @property
    def has_ext(self) -> bool:
        """Whether a transition of this kind carries a TransitionExt on disk."""
        return self not in (TransitionType.DEFAULT_SYNC, TransitionType.DEFAULT_NON_SYNC)

    @classmethod
    def from_text(cls, s: str) -> "TransitionType":
        return cls[s.upper()]


# -----------------------------
# Sequential model (file order preserved)
# -----------------------------

@dataclass
class IntermediateAnimation:
    start_key: str
    target_key: str


@dataclass
class ChainAnimation:
    id: int
    duration: float


@dataclass
class TransitionExt:
    duration: float
    intermediate_anims: List[IntermediateAnimation] = field(default_factory=list)
    chain_anims: List[ChainAnimation] = field(default_factory=list)


@dataclass
class Transition:
    id: int                             # target animation id
    type: TransitionType
    ext: Optional[TransitionExt] = None


@dataclass
class Animation:
    id: int
    path: str
    index: int
    trans: List[Transition] = field(default_factory=list)


@dataclass
class Layer:
    id: int
    priority: int                       # signed
    weight: float
    ease_in_time: float
    ease_out_time: float
    sync_id: int


@dataclass
class LayerGroup:
    id: int
    name: str
    layers: List[Layer] = field(default_factory=list)


@dataclass
class Model:
    path: str
    root: str


@dataclass
class DefaultTransitions:
    # On disk both types come before both durations.
    sync_type: TransitionType
    sync_duration: float
    non_sync_type: TransitionType
    non_sync_duration: float


@dataclass
class KfmBody:
    model: Model
    default_trans: DefaultTransitions
    anims: List[Animation] = field(default_factory=list)
    layer_groups: List[LayerGroup] = field(default_factory=list)


@dataclass
class KfmHeader:
    """Everything before the body: version byte and byte-order flag.

    The magic literal is fixed and not stored.
    """

    version: int
    is_little_endian: bool = True


@dataclass
class KfmFile:
    header: KfmHeader
    body: KfmBody


# -----------------------------
# High-level DTOs used by summarize_kfm
# -----------------------------

@dataclass
class KfmAnimInfo:
    id: int
    path: str
    index: int
    num_trans: int


@dataclass
class KfmSummary:
    version: int
    byte_order: str
    model_path: str
    model_root: str
    anims: List[KfmAnimInfo]
    num_trans: int
    trans_by_type: Dict[str, int]
    num_layer_groups: int
    num_layers: int
    duplicate_anim_ids: List[int]
    dangling: List[Tuple[int, int]]     # (from anim id, missing target id)
