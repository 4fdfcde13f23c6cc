"""libkfm.header

C++ header listing every animation id of a KFM file as an enum member, named
after the upper-cased file stem of the animation path.
"""

from __future__ import annotations

import posixpath
from typing import List, Sequence

from .errors import PathFormatError
from .model import Animation

_HEADER_TEMPLATE = """\
// This file was automatically generated. It contains definitions for all the
// animations stored in the associated KFM file. Include this file in your
// final application to easily refer to animation sequences.

#ifndef {guard}
#define {guard}

namespace {namespace}
{{
    enum
    {{
{members}    }};
}}

#endif  // #ifndef {guard}
"""


def enum_name(anim_path: str) -> str:
    adj = anim_path.replace("\\", "/").replace("-", "_")
    stem = posixpath.basename(adj.rstrip("/"))
    # Same rule as a path's file stem: a leading dot is part of the name.
    dot = stem.rfind(".")
    if dot > 0:
        stem = stem[:dot]
    if not stem or stem in (".", ".."):
        raise PathFormatError(f"no file stem in animation path {anim_path!r}")
    return stem.upper()


def make_enum_members(anims: Sequence[Animation]) -> List[str]:
    return [f"{enum_name(a.path)} = {a.id}" for a in anims]


def make_header(src_file_stem: str, anims: Sequence[Animation]) -> str:
    members = make_enum_members(anims)
    body = ",\n".join(f"        {m}" for m in members)
    if body:
        body += "\n"
    return _HEADER_TEMPLATE.format(
        guard=f"{src_file_stem.upper()}_ANIM_H__",
        namespace=f"{src_file_stem}_Anim",
        members=body,
    )
