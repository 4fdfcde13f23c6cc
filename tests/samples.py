"""Graphs shared by the test modules."""

from libkfm.model import (
    Animation,
    ChainAnimation,
    DefaultTransitions,
    IntermediateAnimation,
    KfmBody,
    KfmFile,
    KfmHeader,
    Layer,
    LayerGroup,
    Model,
    Transition,
    TransitionExt,
    TransitionType,
)

ANIM_PATHS = [
    "./mech/mech_gunbot_m_idle.kf",
    "./mech/mech_gunbot_m_run.kf",
    "./mech/mech_gunbot_a_attack.kf",
    "./mech/mech_gunbot_h_onhit.kf",
]


def make_ext(duration=0.25):
    return TransitionExt(
        duration=duration,
        intermediate_anims=[IntermediateAnimation(start_key="start", target_key="end")],
        chain_anims=[ChainAnimation(id=2, duration=0.5)],
    )


def empty_body():
    return KfmBody(
        model=Model(path="./../../mesh/newenemies/mech_order_darkling_1.nif", root="Accumulation_Root"),
        default_trans=DefaultTransitions(
            sync_type=TransitionType.MORPH,
            sync_duration=0.25,
            non_sync_type=TransitionType.BLEND,
            non_sync_duration=0.5,
        ),
    )


def connected_body(kind=TransitionType.DEFAULT_NON_SYNC):
    """Four animations, each with a transition to every other one."""
    body = empty_body()
    for i, path in enumerate(ANIM_PATHS):
        trans = [
            Transition(id=j, type=kind, ext=make_ext() if kind.has_ext else None)
            for j in range(len(ANIM_PATHS))
            if j != i
        ]
        body.anims.append(Animation(id=i, path=path, index=0, trans=trans))
    return body


def rich_file(little=True):
    """Exercises every record type and both ext branches."""
    body = empty_body()
    body.anims = [
        Animation(id=3, path="./mech/idle.kf", index=1, trans=[
            Transition(id=5, type=TransitionType.BLEND, ext=make_ext(0.125)),
            Transition(id=9, type=TransitionType.DEFAULT_SYNC),
        ]),
        Animation(id=5, path="./mech/run.kf", index=2, trans=[
            Transition(id=3, type=TransitionType.CHAIN_ANIMATION, ext=TransitionExt(duration=1.5)),
            Transition(id=9, type=TransitionType.DEFAULT_NON_SYNC),
        ]),
        Animation(id=9, path="", index=0),
    ]
    body.layer_groups = [
        LayerGroup(id=1, name="upper", layers=[
            Layer(id=1, priority=-2, weight=1.0, ease_in_time=0.25, ease_out_time=0.75, sync_id=7),
            Layer(id=2, priority=3, weight=0.5, ease_in_time=0.0, ease_out_time=0.0, sync_id=0),
        ]),
        LayerGroup(id=2, name="", layers=[]),
    ]
    return KfmFile(header=KfmHeader(version=2, is_little_endian=little), body=body)
