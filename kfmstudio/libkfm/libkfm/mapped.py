"""libkfm.mapped

Id-keyed view of a KfmBody used while editing.

Animations are keyed by id and each animation's transitions by target id, so
patches can look up, insert and delete without scanning lists. Converting
back emits animations and transitions in ascending id order; the original file
order is not kept.

Both conversions are pure: the input is never mutated and the result shares no
mutable state with it.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .errors import DuplicateIdError, context
from .model import (
    Animation,
    DefaultTransitions,
    KfmBody,
    LayerGroup,
    Model,
    Transition,
    TransitionExt,
    TransitionType,
)


@dataclass
class MappedTransition:
    type: TransitionType
    ext: Optional[TransitionExt] = None


@dataclass
class MappedAnimation:
    path: str
    index: int
    trans: Dict[int, MappedTransition] = field(default_factory=dict)


@dataclass
class MappedBody:
    model: Model
    default_trans: DefaultTransitions
    anims: Dict[int, MappedAnimation] = field(default_factory=dict)
    layer_groups: List[LayerGroup] = field(default_factory=list)


def map_animation(anim: Animation) -> Tuple[int, MappedAnimation]:
    trans: Dict[int, MappedTransition] = {}
    for tran in anim.trans:
        if tran.id in trans:
            raise DuplicateIdError(f"duplicate tran id: `{tran.id}`")
        trans[tran.id] = MappedTransition(type=tran.type, ext=copy.deepcopy(tran.ext))
    return anim.id, MappedAnimation(path=anim.path, index=anim.index, trans=trans)


def unmap_animation(anim_id: int, anim: MappedAnimation) -> Animation:
    trans = [
        Transition(id=tran_id, type=tran.type, ext=copy.deepcopy(tran.ext))
        for tran_id, tran in sorted(anim.trans.items())
    ]
    return Animation(id=anim_id, path=anim.path, index=anim.index, trans=trans)


def map_body(body: KfmBody) -> MappedBody:
    anims: Dict[int, MappedAnimation] = {}
    for i, anim in enumerate(body.anims):
        with context(f"map `anims[{i}]`"):
            anim_id, m_anim = map_animation(anim)
            if anim_id in anims:
                raise DuplicateIdError(f"duplicate anim id: `{anim_id}`")
            anims[anim_id] = m_anim

    return MappedBody(
        model=copy.deepcopy(body.model),
        default_trans=copy.deepcopy(body.default_trans),
        anims=anims,
        layer_groups=copy.deepcopy(body.layer_groups),
    )


def unmap_body(mapped: MappedBody) -> KfmBody:
    anims = [unmap_animation(anim_id, anim) for anim_id, anim in sorted(mapped.anims.items())]
    return KfmBody(
        model=copy.deepcopy(mapped.model),
        default_trans=copy.deepcopy(mapped.default_trans),
        anims=anims,
        layer_groups=copy.deepcopy(mapped.layer_groups),
    )
