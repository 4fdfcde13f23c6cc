"""libkfm.patch

Declarative edits applied to a MappedBody.

A patch file is a YAML document:

    anims:
    - add:                      # full animation record, fails if the id exists
        id: 7
        path: ./mech/idle.kf
        index: 0
        trans: [{id: 1, type: blend, ext: {...}}]
    - delete:                   # also drops every transition pointing at it
        id: /^1[0-9]$/
    - update:
        id: 3                   # literal id or /regex/
        path: ./mech/run.kf     # optional, untouched when omitted
        index: 2                # optional, untouched when omitted
        trans:
        - add: {id: /.*/, type: default_sync}   # resolves against all anims
        - delete: {id: 4}                       # resolves against this anim's transitions
        - update: {id: 5, type: morph}          # ext is always replaced (here: cleared)

Instructions run strictly in order and each sees the effects of the ones
before it. A failing instruction aborts the batch; without ``atomic=True``
the earlier instructions stay applied.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from .errors import ConflictError, NotFoundError, PatchFormatError, context
from .mapped import MappedAnimation, MappedBody, MappedTransition, map_animation
from .model import Animation, TransitionExt, TransitionType
from .selector import IdSelector, parse_selector
from .text import (
    animation_from_dict,
    animation_to_dict,
    expect_list,
    expect_mapping,
    ext_to_dict,
    get_int,
    get_str,
    get_type,
    optional_ext,
)

log = logging.getLogger(__name__)


# -----------------------------
# Instructions
# -----------------------------

@dataclass
class AddTransition:
    id: IdSelector
    type: TransitionType
    ext: Optional[TransitionExt] = None


@dataclass
class DeleteTransition:
    id: IdSelector


@dataclass
class UpdateTransition:
    id: IdSelector
    type: Optional[TransitionType] = None
    ext: Optional[TransitionExt] = None


TransitionPatch = Union[AddTransition, DeleteTransition, UpdateTransition]


@dataclass
class AddAnimation:
    anim: Animation


@dataclass
class DeleteAnimation:
    id: IdSelector


@dataclass
class UpdateAnimation:
    id: IdSelector
    path: Optional[str] = None
    index: Optional[int] = None
    trans: Optional[List[TransitionPatch]] = None


AnimationPatch = Union[AddAnimation, DeleteAnimation, UpdateAnimation]


@dataclass
class PatchFile:
    anims: List[AnimationPatch] = field(default_factory=list)

    @classmethod
    def loads(cls, text: str) -> "PatchFile":
        with context("parse patch yaml"):
            doc = yaml.safe_load(text)
        return patch_from_dict(doc)

    @classmethod
    def load(cls, path: str) -> "PatchFile":
        with open(path, "r", encoding="utf-8") as f:
            return cls.loads(f.read())

    def dumps(self) -> str:
        return yaml.safe_dump(patch_to_dict(self), sort_keys=False, default_flow_style=False)


# -----------------------------
# Parsing
# -----------------------------

_TAGS = ("add", "delete", "update")


def _split_tag(value: Any, where: str):
    d = expect_mapping(value, where)
    if len(d) != 1 or next(iter(d)) not in _TAGS:
        raise PatchFormatError(f"{where}: expected exactly one of add/delete/update, got {sorted(map(str, d))}")
    tag, body = next(iter(d.items()))
    return tag, expect_mapping(body, f"{where}.{tag}")


def _check_keys(d: Dict[str, Any], allowed: Iterable[str], where: str) -> None:
    extra = sorted(str(k) for k in set(d) - set(allowed))
    if extra:
        raise PatchFormatError(f"{where}: unknown field(s) {', '.join(extra)}")


def _selector(d: Dict[str, Any], where: str) -> IdSelector:
    if "id" not in d:
        raise PatchFormatError(f"{where}: missing field `id`")
    with context(f"parse `{where}.id`"):
        return parse_selector(d["id"])


def _transition_patch_from_dict(value: Any, where: str) -> TransitionPatch:
    tag, d = _split_tag(value, where)
    where = f"{where}.{tag}"
    if tag == "add":
        _check_keys(d, ("id", "type", "ext"), where)
        return AddTransition(id=_selector(d, where), type=get_type(d, "type", where), ext=optional_ext(d, where))
    if tag == "delete":
        _check_keys(d, ("id",), where)
        return DeleteTransition(id=_selector(d, where))
    _check_keys(d, ("id", "type", "ext"), where)
    type_ = get_type(d, "type", where) if d.get("type") is not None else None
    return UpdateTransition(id=_selector(d, where), type=type_, ext=optional_ext(d, where))


def _animation_patch_from_dict(value: Any, where: str) -> AnimationPatch:
    tag, d = _split_tag(value, where)
    where = f"{where}.{tag}"
    if tag == "add":
        return AddAnimation(anim=animation_from_dict(d, where))
    if tag == "delete":
        _check_keys(d, ("id",), where)
        return DeleteAnimation(id=_selector(d, where))

    _check_keys(d, ("id", "path", "index", "trans"), where)
    trans = None
    if d.get("trans") is not None:
        trans = [
            _transition_patch_from_dict(t, f"{where}.trans[{i}]")
            for i, t in enumerate(expect_list(d["trans"], f"{where}.trans"))
        ]
    return UpdateAnimation(
        id=_selector(d, where),
        path=get_str(d, "path", where) if d.get("path") is not None else None,
        index=get_int(d, "index", where) if d.get("index") is not None else None,
        trans=trans,
    )


def patch_from_dict(doc: Any) -> PatchFile:
    d = expect_mapping(doc, "patch")
    _check_keys(d, ("anims",), "patch")
    items = expect_list(d.get("anims") or [], "anims")
    return PatchFile(anims=[_animation_patch_from_dict(a, f"anims[{i}]") for i, a in enumerate(items)])


def _transition_patch_to_dict(p: TransitionPatch) -> Dict[str, Any]:
    if isinstance(p, AddTransition):
        body: Dict[str, Any] = {"id": p.id.to_wire(), "type": p.type.text}
        if p.ext is not None:
            body["ext"] = ext_to_dict(p.ext)
        return {"add": body}
    if isinstance(p, DeleteTransition):
        return {"delete": {"id": p.id.to_wire()}}
    body = {"id": p.id.to_wire()}
    if p.type is not None:
        body["type"] = p.type.text
    if p.ext is not None:
        body["ext"] = ext_to_dict(p.ext)
    return {"update": body}


def patch_to_dict(patch_file: PatchFile) -> Dict[str, Any]:
    out = []
    for p in patch_file.anims:
        if isinstance(p, AddAnimation):
            out.append({"add": animation_to_dict(p.anim)})
        elif isinstance(p, DeleteAnimation):
            out.append({"delete": {"id": p.id.to_wire()}})
        else:
            body: Dict[str, Any] = {"id": p.id.to_wire()}
            if p.path is not None:
                body["path"] = p.path
            if p.index is not None:
                body["index"] = p.index
            if p.trans is not None:
                body["trans"] = [_transition_patch_to_dict(t) for t in p.trans]
            out.append({"update": body})
    return {"anims": out}


# -----------------------------
# Application
# -----------------------------

def _parent(m_src: MappedBody, anim_id: int) -> MappedAnimation:
    anim = m_src.anims.get(anim_id)
    if anim is None:
        raise NotFoundError(f"get parent anim `{anim_id}`")
    return anim


def on_add_anim(m_src: MappedBody, add: AddAnimation) -> None:
    with context("map anim"):
        anim_id, m_anim = map_animation(add.anim)
    if anim_id in m_src.anims:
        raise ConflictError(f"anim `{anim_id}` already exists")
    m_src.anims[anim_id] = m_anim
    log.debug("added anim %d", anim_id)


def on_delete_anim(m_src: MappedBody, delete: DeleteAnimation) -> None:
    delete_ids = delete.id.resolve(m_src.anims.keys())

    for anim_id in delete_ids:
        del m_src.anims[anim_id]

    # Drop transitions that would dangle.
    dropped = 0
    for anim in m_src.anims.values():
        for tran_id in delete_ids.intersection(anim.trans):
            del anim.trans[tran_id]
            dropped += 1

    log.debug("deleted anims %s (+%d transitions)", sorted(delete_ids), dropped)


def on_add_tran(m_src: MappedBody, parent_id: int, add: AddTransition) -> None:
    add_ids = add.id.resolve(m_src.anims.keys())
    add_ids.discard(parent_id)

    parent = _parent(m_src, parent_id)
    for tran_id in sorted(add_ids):
        if tran_id in parent.trans:
            raise ConflictError(f"anim `{parent_id}` already has tran to `{tran_id}`")
        parent.trans[tran_id] = MappedTransition(type=add.type, ext=copy.deepcopy(add.ext))

    log.debug("anim %d: added trans to %s", parent_id, sorted(add_ids))


def on_delete_tran(m_src: MappedBody, parent_id: int, delete: DeleteTransition) -> None:
    parent = _parent(m_src, parent_id)
    delete_ids = delete.id.resolve(parent.trans.keys())

    for tran_id in sorted(delete_ids):
        if parent.trans.pop(tran_id, None) is None:
            raise NotFoundError(f"anim `{parent_id}` did not have a tran to `{tran_id}`")

    log.debug("anim %d: deleted trans to %s", parent_id, sorted(delete_ids))


def on_update_tran(m_src: MappedBody, parent_id: int, update: UpdateTransition) -> None:
    parent = _parent(m_src, parent_id)
    update_ids = update.id.resolve(parent.trans.keys())

    for tran_id in sorted(update_ids):
        tran = parent.trans.get(tran_id)
        if tran is None:
            raise NotFoundError(f"get tran `{tran_id}`")
        if update.type is not None:
            tran.type = update.type
        # Unlike path/index on animations, ext is replaced even when omitted.
        tran.ext = copy.deepcopy(update.ext)

    log.debug("anim %d: updated trans to %s", parent_id, sorted(update_ids))


def on_update_anim(m_src: MappedBody, update: UpdateAnimation) -> None:
    update_ids = update.id.resolve(m_src.anims.keys())

    for anim_id in sorted(update_ids):
        anim = m_src.anims.get(anim_id)
        if anim is None:
            raise NotFoundError(f"get anim `{anim_id}`")

        if update.path is not None:
            anim.path = update.path
        if update.index is not None:
            anim.index = update.index

        for i, tran_patch in enumerate(update.trans or []):
            with context(f"apply `trans[{i}]` to anim `{anim_id}`"):
                if isinstance(tran_patch, AddTransition):
                    on_add_tran(m_src, anim_id, tran_patch)
                elif isinstance(tran_patch, DeleteTransition):
                    on_delete_tran(m_src, anim_id, tran_patch)
                else:
                    on_update_tran(m_src, anim_id, tran_patch)

    log.debug("updated anims %s", sorted(update_ids))


def _apply_all(m_src: MappedBody, patch_file: PatchFile) -> None:
    for i, anim_patch in enumerate(patch_file.anims):
        with context(f"apply `anims[{i}]`"):
            if isinstance(anim_patch, AddAnimation):
                on_add_anim(m_src, anim_patch)
            elif isinstance(anim_patch, DeleteAnimation):
                on_delete_anim(m_src, anim_patch)
            else:
                on_update_anim(m_src, anim_patch)


def apply(m_src: MappedBody, patch_file: PatchFile, atomic: bool = False) -> None:
    """Apply every instruction of ``patch_file`` to ``m_src`` in order.

    With ``atomic=True`` the batch runs against a copy which replaces the
    caller's animations only once every instruction succeeded.
    """
    if not atomic:
        _apply_all(m_src, patch_file)
        return

    work = copy.deepcopy(m_src)
    _apply_all(work, patch_file)
    m_src.anims = work.anims
