"""libkfm.reader

Binary KFM decoder.

Layout:

    u8      version
    35 B    magic "Gamebryo KFM File Version 2.2.0.0b\\n"
    u8      is_little_endian (1) / big endian (0)
    body    every field below uses the byte order chosen above

The header is independent of the byte order flag; the body is not. The whole
file is buffered, so every count is checked against the bytes that are left
before any element is read.
"""

from __future__ import annotations

import logging
from typing import Callable, List, TypeVar

from .bin import Bin, ByteOrder
from .errors import FormatError, context
from .model import (
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

log = logging.getLogger(__name__)

MAGIC = b"Gamebryo KFM File Version 2.2.0.0b\n"

# Smallest encoded size of each repeated record, used to sanity check counts.
_MIN_ANIM = 16          # id, path len, index, trans count
_MIN_TRAN = 8           # id, type code
_MIN_INTERMEDIATE = 8   # two empty strings
_MIN_CHAIN = 8          # id, duration
_MIN_GROUP = 12         # id, name len, layer count
_MIN_LAYER = 24

T = TypeVar("T")


def _read_list(b: Bin, order: ByteOrder, name: str, item_size: int,
               read_item: Callable[[Bin, ByteOrder], T]) -> List[T]:
    with context(f"read `num_{name}`"):
        n = b.count(order, item_size)
    out: List[T] = []
    for i in range(n):
        with context(f"read `{name}[{i}]`"):
            out.append(read_item(b, order))
    return out


def _parse_header(b: Bin) -> KfmHeader:
    with context("read `version`"):
        version = b.u8()

    with context("read `magic`"):
        magic = b.read(len(MAGIC))
        if magic != MAGIC:
            raise FormatError(f"unexpected `magic`: {magic!r}")

    with context("read `is_little_endian`"):
        flag = b.u8()
        if flag not in (0, 1):
            raise FormatError(f"unexpected `is_little_endian`: {flag}")

    return KfmHeader(version=version, is_little_endian=(flag == 1))


def _read_type(b: Bin, order: ByteOrder) -> TransitionType:
    with context("read `type_code`"):
        code = b.u32(order)
    try:
        return TransitionType(code)
    except ValueError:
        raise FormatError(f"unknown transition `type_code` `{code}`") from None


def _read_model(b: Bin, order: ByteOrder) -> Model:
    with context("read `path`"):
        path = b.string(order)
    with context("read `root`"):
        root = b.string(order)
    return Model(path=path, root=root)


def _read_default_trans(b: Bin, order: ByteOrder) -> DefaultTransitions:
    # Both types first, then both durations.
    with context("read `sync_type`"):
        sync_type = _read_type(b, order)
    with context("read `non_sync_type`"):
        non_sync_type = _read_type(b, order)
    with context("read `sync_duration`"):
        sync_duration = b.f32(order)
    with context("read `non_sync_duration`"):
        non_sync_duration = b.f32(order)
    return DefaultTransitions(
        sync_type=sync_type,
        sync_duration=sync_duration,
        non_sync_type=non_sync_type,
        non_sync_duration=non_sync_duration,
    )


def _read_intermediate(b: Bin, order: ByteOrder) -> IntermediateAnimation:
    with context("read `start_key`"):
        start_key = b.string(order)
    with context("read `target_key`"):
        target_key = b.string(order)
    return IntermediateAnimation(start_key=start_key, target_key=target_key)


def _read_chain(b: Bin, order: ByteOrder) -> ChainAnimation:
    with context("read `id`"):
        id_ = b.u32(order)
    with context("read `duration`"):
        duration = b.f32(order)
    return ChainAnimation(id=id_, duration=duration)


def _read_ext(b: Bin, order: ByteOrder) -> TransitionExt:
    with context("read `duration`"):
        duration = b.f32(order)
    intermediate = _read_list(b, order, "intermediate_anims", _MIN_INTERMEDIATE, _read_intermediate)
    chain = _read_list(b, order, "chain_anims", _MIN_CHAIN, _read_chain)
    return TransitionExt(duration=duration, intermediate_anims=intermediate, chain_anims=chain)


def _read_transition(b: Bin, order: ByteOrder) -> Transition:
    with context("read `id`"):
        id_ = b.u32(order)
    with context("read `type`"):
        type_ = _read_type(b, order)

    ext = None
    if type_.has_ext:
        with context("read `ext`"):
            ext = _read_ext(b, order)

    return Transition(id=id_, type=type_, ext=ext)


def _read_animation(b: Bin, order: ByteOrder) -> Animation:
    with context("read `id`"):
        id_ = b.u32(order)
    with context("read `path`"):
        path = b.string(order)
    with context("read `index`"):
        index = b.u32(order)
    trans = _read_list(b, order, "trans", _MIN_TRAN, _read_transition)
    return Animation(id=id_, path=path, index=index, trans=trans)


def _read_layer(b: Bin, order: ByteOrder) -> Layer:
    with context("read `id`"):
        id_ = b.u32(order)
    with context("read `priority`"):
        priority = b.i32(order)
    with context("read `weight`"):
        weight = b.f32(order)
    with context("read `ease_in_time`"):
        ease_in = b.f32(order)
    with context("read `ease_out_time`"):
        ease_out = b.f32(order)
    with context("read `sync_id`"):
        sync_id = b.u32(order)
    return Layer(
        id=id_,
        priority=priority,
        weight=weight,
        ease_in_time=ease_in,
        ease_out_time=ease_out,
        sync_id=sync_id,
    )


def _read_layer_group(b: Bin, order: ByteOrder) -> LayerGroup:
    with context("read `id`"):
        id_ = b.u32(order)
    with context("read `name`"):
        name = b.string(order)
    layers = _read_list(b, order, "layers", _MIN_LAYER, _read_layer)
    return LayerGroup(id=id_, name=name, layers=layers)


def _read_body(b: Bin, order: ByteOrder) -> KfmBody:
    with context("read `model`"):
        model = _read_model(b, order)
    with context("read `default_trans`"):
        default_trans = _read_default_trans(b, order)
    anims = _read_list(b, order, "anims", _MIN_ANIM, _read_animation)
    layer_groups = _read_list(b, order, "layer_groups", _MIN_GROUP, _read_layer_group)
    return KfmBody(
        model=model,
        default_trans=default_trans,
        anims=anims,
        layer_groups=layer_groups,
    )


def decode_kfm(data: bytes) -> KfmFile:
    b = Bin(data)

    with context("read header"):
        header = _parse_header(b)

    order = ByteOrder.from_flag(header.is_little_endian)
    with context("read body"):
        body = _read_body(b, order)

    if b.remaining():
        log.debug("ignoring %d trailing byte(s) after body", b.remaining())

    log.debug(
        "decoded kfm v%d (%s endian): %d anims, %d layer groups",
        header.version, order.name.lower(), len(body.anims), len(body.layer_groups),
    )
    return KfmFile(header=header, body=body)


def read_kfm(path: str) -> KfmFile:
    with open(path, "rb") as f:
        data = f.read()
    return decode_kfm(data)
