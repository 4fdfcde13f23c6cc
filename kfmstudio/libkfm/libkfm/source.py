"""libkfm.source

Load and save a KfmFile by file extension: `.kfm` is the binary form,
`.yaml` / `.yml` the text form.
"""

from __future__ import annotations

import os

from .errors import FormatError
from .model import KfmFile
from .reader import read_kfm
from .text import dump_yaml, load_yaml
from .writer import write_kfm

KFM_EXTS = (".kfm",)
YAML_EXTS = (".yaml", ".yml")


def _ext(path: str) -> str:
    ext = os.path.splitext(path)[1].lower()
    if ext not in KFM_EXTS + YAML_EXTS:
        raise FormatError(f"unknown extension {ext!r} for {path}")
    return ext


def load_source(path: str) -> KfmFile:
    if _ext(path) in KFM_EXTS:
        return read_kfm(path)
    return load_yaml(path)


def save_source(kfm: KfmFile, path: str) -> None:
    if _ext(path) in KFM_EXTS:
        write_kfm(kfm, path)
    else:
        dump_yaml(kfm, path)


def converted_path(path: str) -> str:
    """`foo.kfm` -> `foo.yaml`, `foo.yaml`/`foo.yml` -> `foo.kfm`."""
    base, _ = os.path.splitext(path)
    if _ext(path) in KFM_EXTS:
        return base + ".yaml"
    return base + ".kfm"
