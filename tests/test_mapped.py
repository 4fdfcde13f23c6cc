import pytest

from libkfm.errors import DuplicateIdError
from libkfm.mapped import map_body, unmap_body
from libkfm.model import Animation, Transition, TransitionType

from samples import connected_body, empty_body, rich_file


def test_duplicate_anim_id():
    body = empty_body()
    body.anims = [
        Animation(id=7, path="a.kf", index=0),
        Animation(id=7, path="b.kf", index=1),
    ]
    with pytest.raises(DuplicateIdError) as exc:
        map_body(body)
    assert "duplicate anim id: `7`" in str(exc.value)
    assert "map `anims[1]`" in str(exc.value)


def test_duplicate_tran_id():
    body = empty_body()
    body.anims = [
        Animation(id=1, path="a.kf", index=0, trans=[
            Transition(id=2, type=TransitionType.DEFAULT_SYNC),
            Transition(id=2, type=TransitionType.DEFAULT_NON_SYNC),
        ]),
    ]
    with pytest.raises(DuplicateIdError) as exc:
        map_body(body)
    assert "duplicate tran id: `2`" in str(exc.value)


def test_unmap_sorts_by_id():
    body = connected_body()
    body.anims.reverse()
    for a in body.anims:
        a.trans.reverse()

    back = unmap_body(map_body(body))
    assert [a.id for a in back.anims] == [0, 1, 2, 3]
    assert [t.id for t in back.anims[0].trans] == [1, 2, 3]


def test_roundtrip_of_sorted_body_is_identity():
    body = rich_file().body
    assert unmap_body(map_body(body)) == body


def test_mapping_does_not_alias_input():
    body = rich_file().body
    mapped = map_body(body)
    mapped.anims[3].trans[5].ext.duration = 99.0
    mapped.layer_groups[0].name = "changed"
    assert body.anims[0].trans[0].ext.duration == 0.125
    assert body.layer_groups[0].name == "upper"
