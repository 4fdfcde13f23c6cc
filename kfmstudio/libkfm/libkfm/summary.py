from __future__ import annotations

from collections import Counter
from typing import List, Tuple

from .model import KfmAnimInfo, KfmFile, KfmSummary, TransitionType


def summarize_kfm(kfm: KfmFile) -> KfmSummary:
    body = kfm.body
    anim_ids = [a.id for a in body.anims]
    known = set(anim_ids)

    by_type = Counter(t.type for a in body.anims for t in a.trans)

    # Transitions whose target is not an animation of this file. A decoded
    # file can carry these; the patch engine never creates them.
    dangling: List[Tuple[int, int]] = [
        (a.id, t.id) for a in body.anims for t in a.trans if t.id not in known
    ]

    dupes = sorted(i for i, n in Counter(anim_ids).items() if n > 1)

    return KfmSummary(
        version=kfm.header.version,
        byte_order="little" if kfm.header.is_little_endian else "big",
        model_path=body.model.path,
        model_root=body.model.root,
        anims=[KfmAnimInfo(id=a.id, path=a.path, index=a.index, num_trans=len(a.trans)) for a in body.anims],
        num_trans=sum(by_type.values()),
        trans_by_type={t.text: by_type.get(t, 0) for t in TransitionType},
        num_layer_groups=len(body.layer_groups),
        num_layers=sum(len(g.layers) for g in body.layer_groups),
        duplicate_anim_ids=dupes,
        dangling=dangling,
    )
