"""libkfm.text

YAML form of a KfmFile.

The document mirrors the dataclasses field for field (header, body, model,
default_trans, anims, trans, ext, layer_groups, layers). Transition kinds are
written by their snake_case name and `ext` is left out when absent.

Loading checks every field's presence and type and reports the path of the
first bad one (e.g. "body.anims[2].trans[0].type").
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import yaml

from .errors import PatchFormatError, context
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


# -----------------------------
# Field access with type checks
# -----------------------------

def expect_mapping(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise PatchFormatError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def expect_list(value: Any, where: str) -> List[Any]:
    if not isinstance(value, list):
        raise PatchFormatError(f"{where}: expected a list, got {type(value).__name__}")
    return value


def _require(d: Dict[str, Any], key: str, where: str) -> Any:
    if key not in d:
        raise PatchFormatError(f"{where}: missing field `{key}`")
    return d[key]


def get_int(d: Dict[str, Any], key: str, where: str, signed: bool = False) -> int:
    v = _require(d, key, where)
    if isinstance(v, bool) or not isinstance(v, int):
        raise PatchFormatError(f"{where}.{key}: expected an integer, got {v!r}")
    if not signed and v < 0:
        raise PatchFormatError(f"{where}.{key}: expected a non-negative integer, got {v}")
    return v


def get_float(d: Dict[str, Any], key: str, where: str) -> float:
    v = _require(d, key, where)
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise PatchFormatError(f"{where}.{key}: expected a number, got {v!r}")
    return float(v)


def get_str(d: Dict[str, Any], key: str, where: str) -> str:
    v = _require(d, key, where)
    if not isinstance(v, str):
        raise PatchFormatError(f"{where}.{key}: expected a string, got {v!r}")
    return v


def get_bool(d: Dict[str, Any], key: str, where: str) -> bool:
    v = _require(d, key, where)
    if not isinstance(v, bool):
        raise PatchFormatError(f"{where}.{key}: expected true/false, got {v!r}")
    return v


def get_type(d: Dict[str, Any], key: str, where: str) -> TransitionType:
    v = get_str(d, key, where)
    try:
        return TransitionType.from_text(v)
    except KeyError:
        names = ", ".join(t.text for t in TransitionType)
        raise PatchFormatError(f"{where}.{key}: unknown transition type {v!r} (one of: {names})") from None


# -----------------------------
# dict -> model
# -----------------------------

def ext_from_dict(value: Any, where: str) -> TransitionExt:
    d = expect_mapping(value, where)
    intermediate = []
    for i, item in enumerate(expect_list(_require(d, "intermediate_anims", where), f"{where}.intermediate_anims")):
        w = f"{where}.intermediate_anims[{i}]"
        item = expect_mapping(item, w)
        intermediate.append(IntermediateAnimation(
            start_key=get_str(item, "start_key", w),
            target_key=get_str(item, "target_key", w),
        ))
    chain = []
    for i, item in enumerate(expect_list(_require(d, "chain_anims", where), f"{where}.chain_anims")):
        w = f"{where}.chain_anims[{i}]"
        item = expect_mapping(item, w)
        chain.append(ChainAnimation(id=get_int(item, "id", w), duration=get_float(item, "duration", w)))
    return TransitionExt(
        duration=get_float(d, "duration", where),
        intermediate_anims=intermediate,
        chain_anims=chain,
    )


def optional_ext(d: Dict[str, Any], where: str) -> Optional[TransitionExt]:
    if d.get("ext") is None:
        return None
    return ext_from_dict(d["ext"], f"{where}.ext")


def transition_from_dict(value: Any, where: str) -> Transition:
    d = expect_mapping(value, where)
    return Transition(
        id=get_int(d, "id", where),
        type=get_type(d, "type", where),
        ext=optional_ext(d, where),
    )


def animation_from_dict(value: Any, where: str) -> Animation:
    d = expect_mapping(value, where)
    trans = [
        transition_from_dict(t, f"{where}.trans[{i}]")
        for i, t in enumerate(expect_list(d.get("trans", []), f"{where}.trans"))
    ]
    return Animation(
        id=get_int(d, "id", where),
        path=get_str(d, "path", where),
        index=get_int(d, "index", where),
        trans=trans,
    )


def _layer_from_dict(value: Any, where: str) -> Layer:
    d = expect_mapping(value, where)
    return Layer(
        id=get_int(d, "id", where),
        priority=get_int(d, "priority", where, signed=True),
        weight=get_float(d, "weight", where),
        ease_in_time=get_float(d, "ease_in_time", where),
        ease_out_time=get_float(d, "ease_out_time", where),
        sync_id=get_int(d, "sync_id", where),
    )


def _layer_group_from_dict(value: Any, where: str) -> LayerGroup:
    d = expect_mapping(value, where)
    layers = [
        _layer_from_dict(x, f"{where}.layers[{i}]")
        for i, x in enumerate(expect_list(d.get("layers", []), f"{where}.layers"))
    ]
    return LayerGroup(id=get_int(d, "id", where), name=get_str(d, "name", where), layers=layers)


def body_from_dict(value: Any, where: str = "body") -> KfmBody:
    d = expect_mapping(value, where)
    m = expect_mapping(_require(d, "model", where), f"{where}.model")
    dt = expect_mapping(_require(d, "default_trans", where), f"{where}.default_trans")
    w = f"{where}.default_trans"
    return KfmBody(
        model=Model(path=get_str(m, "path", f"{where}.model"), root=get_str(m, "root", f"{where}.model")),
        default_trans=DefaultTransitions(
            sync_type=get_type(dt, "sync_type", w),
            sync_duration=get_float(dt, "sync_duration", w),
            non_sync_type=get_type(dt, "non_sync_type", w),
            non_sync_duration=get_float(dt, "non_sync_duration", w),
        ),
        anims=[
            animation_from_dict(a, f"{where}.anims[{i}]")
            for i, a in enumerate(expect_list(d.get("anims", []), f"{where}.anims"))
        ],
        layer_groups=[
            _layer_group_from_dict(g, f"{where}.layer_groups[{i}]")
            for i, g in enumerate(expect_list(d.get("layer_groups", []), f"{where}.layer_groups"))
        ],
    )


def kfm_from_dict(value: Any) -> KfmFile:
    d = expect_mapping(value, "document")
    h = expect_mapping(_require(d, "header", "document"), "header")
    version = get_int(h, "version", "header")
    if version > 0xFF:
        raise PatchFormatError(f"header.version: {version} does not fit in a byte")
    header = KfmHeader(version=version, is_little_endian=get_bool(h, "is_little_endian", "header"))
    return KfmFile(header=header, body=body_from_dict(_require(d, "body", "document")))


# -----------------------------
# model -> dict
# -----------------------------

def ext_to_dict(ext: TransitionExt) -> Dict[str, Any]:
    return {
        "duration": ext.duration,
        "intermediate_anims": [
            {"start_key": ia.start_key, "target_key": ia.target_key} for ia in ext.intermediate_anims
        ],
        "chain_anims": [{"id": ca.id, "duration": ca.duration} for ca in ext.chain_anims],
    }


def transition_to_dict(tran: Transition) -> Dict[str, Any]:
    d: Dict[str, Any] = {"id": tran.id, "type": tran.type.text}
    if tran.ext is not None:
        d["ext"] = ext_to_dict(tran.ext)
    return d


def animation_to_dict(anim: Animation) -> Dict[str, Any]:
    return {
        "id": anim.id,
        "path": anim.path,
        "index": anim.index,
        "trans": [transition_to_dict(t) for t in anim.trans],
    }


def body_to_dict(body: KfmBody) -> Dict[str, Any]:
    dt = body.default_trans
    return {
        "model": {"path": body.model.path, "root": body.model.root},
        "default_trans": {
            "sync_type": dt.sync_type.text,
            "sync_duration": dt.sync_duration,
            "non_sync_type": dt.non_sync_type.text,
            "non_sync_duration": dt.non_sync_duration,
        },
        "anims": [animation_to_dict(a) for a in body.anims],
        "layer_groups": [
            {
                "id": g.id,
                "name": g.name,
                "layers": [
                    {
                        "id": x.id,
                        "priority": x.priority,
                        "weight": x.weight,
                        "ease_in_time": x.ease_in_time,
                        "ease_out_time": x.ease_out_time,
                        "sync_id": x.sync_id,
                    }
                    for x in g.layers
                ],
            }
            for g in body.layer_groups
        ],
    }


def kfm_to_dict(kfm: KfmFile) -> Dict[str, Any]:
    return {
        "header": {"version": kfm.header.version, "is_little_endian": kfm.header.is_little_endian},
        "body": body_to_dict(kfm.body),
    }


# -----------------------------
# YAML entry points
# -----------------------------

def dumps_yaml(kfm: KfmFile) -> str:
    return yaml.safe_dump(kfm_to_dict(kfm), sort_keys=False, default_flow_style=False)


def loads_yaml(text: str) -> KfmFile:
    with context("parse yaml"):
        doc = yaml.safe_load(text)
    kfm = kfm_from_dict(doc)
    log.debug("loaded yaml: %d anims", len(kfm.body.anims))
    return kfm


def dump_yaml(kfm: KfmFile, out_path: str) -> None:
    text = dumps_yaml(kfm)
    with open(out_path, "w", encoding="utf-8", newline="") as f:
        f.write(text)


def load_yaml(path: str) -> KfmFile:
    with open(path, "r", encoding="utf-8") as f:
        return loads_yaml(f.read())
