"""libkfm.writer

Binary KFM encoder, the exact mirror of libkfm.reader.

Field order, the types-before-durations order of the default transitions and
the kind-dependent `ext` branch must match the reader byte for byte.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence, TypeVar

from .bin import BinOut, ByteOrder
from .errors import EncodingError, context
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
)
from .reader import MAGIC

log = logging.getLogger(__name__)

T = TypeVar("T")


def _write_list(out: BinOut, order: ByteOrder, name: str, items: Sequence[T],
                write_item: Callable[[BinOut, T, ByteOrder], None]) -> None:
    with context(f"write `num_{name}`"):
        out.u32(len(items), order)
    for i, item in enumerate(items):
        with context(f"write `{name}[{i}]`"):
            write_item(out, item, order)


def _write_header(out: BinOut, header: KfmHeader) -> None:
    with context("write `version`"):
        out.u8(header.version)
    out.write(MAGIC)
    with context("write `is_little_endian`"):
        out.u8(1 if header.is_little_endian else 0)


def _write_model(out: BinOut, model: Model, order: ByteOrder) -> None:
    with context("write `path`"):
        out.string(model.path, order)
    with context("write `root`"):
        out.string(model.root, order)


def _write_default_trans(out: BinOut, dt: DefaultTransitions, order: ByteOrder) -> None:
    with context("write `sync_type`"):
        out.u32(int(dt.sync_type), order)
    with context("write `non_sync_type`"):
        out.u32(int(dt.non_sync_type), order)
    with context("write `sync_duration`"):
        out.f32(dt.sync_duration, order)
    with context("write `non_sync_duration`"):
        out.f32(dt.non_sync_duration, order)


def _write_intermediate(out: BinOut, ia: IntermediateAnimation, order: ByteOrder) -> None:
    with context("write `start_key`"):
        out.string(ia.start_key, order)
    with context("write `target_key`"):
        out.string(ia.target_key, order)


def _write_chain(out: BinOut, ca: ChainAnimation, order: ByteOrder) -> None:
    with context("write `id`"):
        out.u32(ca.id, order)
    with context("write `duration`"):
        out.f32(ca.duration, order)


def _write_ext(out: BinOut, ext: TransitionExt, order: ByteOrder) -> None:
    with context("write `duration`"):
        out.f32(ext.duration, order)
    _write_list(out, order, "intermediate_anims", ext.intermediate_anims, _write_intermediate)
    _write_list(out, order, "chain_anims", ext.chain_anims, _write_chain)


def _write_transition(out: BinOut, tran: Transition, order: ByteOrder) -> None:
    with context("write `id`"):
        out.u32(tran.id, order)
    with context("write `type`"):
        out.u32(int(tran.type), order)

    # Default kinds never carry an ext on disk, whatever the model holds.
    if not tran.type.has_ext:
        return
    with context("write `ext`"):
        if tran.ext is None:
            raise EncodingError(f"`ext` required for `{tran.type.text}` transition")
        _write_ext(out, tran.ext, order)


def _write_animation(out: BinOut, anim: Animation, order: ByteOrder) -> None:
    with context("write `id`"):
        out.u32(anim.id, order)
    with context("write `path`"):
        out.string(anim.path, order)
    with context("write `index`"):
        out.u32(anim.index, order)
    _write_list(out, order, "trans", anim.trans, _write_transition)


def _write_layer(out: BinOut, layer: Layer, order: ByteOrder) -> None:
    with context("write `id`"):
        out.u32(layer.id, order)
    with context("write `priority`"):
        out.i32(layer.priority, order)
    with context("write `weight`"):
        out.f32(layer.weight, order)
    with context("write `ease_in_time`"):
        out.f32(layer.ease_in_time, order)
    with context("write `ease_out_time`"):
        out.f32(layer.ease_out_time, order)
    with context("write `sync_id`"):
        out.u32(layer.sync_id, order)


def _write_layer_group(out: BinOut, group: LayerGroup, order: ByteOrder) -> None:
    with context("write `id`"):
        out.u32(group.id, order)
    with context("write `name`"):
        out.string(group.name, order)
    _write_list(out, order, "layers", group.layers, _write_layer)


def _write_body(out: BinOut, body: KfmBody, order: ByteOrder) -> None:
    with context("write `model`"):
        _write_model(out, body.model, order)
    with context("write `default_trans`"):
        _write_default_trans(out, body.default_trans, order)
    _write_list(out, order, "anims", body.anims, _write_animation)
    _write_list(out, order, "layer_groups", body.layer_groups, _write_layer_group)


def encode_kfm(kfm: KfmFile) -> bytes:
    out = BinOut()
    with context("write header"):
        _write_header(out, kfm.header)

    order = ByteOrder.from_flag(kfm.header.is_little_endian)
    with context("write body"):
        _write_body(out, kfm.body, order)

    log.debug("encoded kfm v%d: %d bytes", kfm.header.version, out.tell())
    return out.getvalue()


def write_kfm(kfm: KfmFile, out_path: str) -> None:
    """Write a KfmFile to disk.

    The file is only created once the whole body encoded successfully.
    """
    data = encode_kfm(kfm)
    with open(out_path, "wb") as f:
        f.write(data)
