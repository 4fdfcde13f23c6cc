from libkfm.model import Transition, TransitionType
from libkfm.summary import summarize_kfm

from samples import rich_file


def test_summary_counts():
    k = rich_file(little=False)
    k.body.anims[2].trans.append(Transition(id=42, type=TransitionType.DEFAULT_SYNC))
    s = summarize_kfm(k)

    assert s.version == 2
    assert s.byte_order == "big"
    assert [a.id for a in s.anims] == [3, 5, 9]
    assert s.num_trans == 5
    assert s.trans_by_type["default_sync"] == 2
    assert s.trans_by_type["crossfade"] == 0
    assert s.num_layer_groups == 2
    assert s.num_layers == 2
    assert s.dangling == [(9, 42)]
    assert s.duplicate_anim_ids == []
