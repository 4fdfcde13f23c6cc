"""libkfm.errors

Error kinds raised by the codec, the mapped view and the patch engine.

Every error keeps a list of context frames ("read `path`", "read `anims[3]`",
...) innermost first, so a failure deep inside a nested record can be located
without a debugger:

    unexpected EOF at 57, need 4 (while read `index` <- read `anims[2]` <- read `body`)
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List

import yaml


class KfmError(RuntimeError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.context: List[str] = []

    def add_context(self, frame: str) -> "KfmError":
        self.context.append(frame)
        return self

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} (while {' <- '.join(self.context)})"


class FormatError(KfmError):
    """Malformed, truncated or unrecognized input."""


class EncodingError(KfmError):
    """A value cannot be represented in the binary format."""


class DuplicateIdError(KfmError):
    pass


class ConflictError(KfmError):
    pass


class NotFoundError(KfmError):
    pass


class PatchFormatError(FormatError):
    """A patch or text document does not have the expected shape."""


class PathFormatError(KfmError):
    pass


@contextmanager
def context(frame: str) -> Iterator[None]:
    """Attach ``frame`` to any error escaping the block.

    YAML parser errors are converted to PatchFormatError first.
    """
    try:
        yield
    except KfmError as e:
        e.add_context(frame)
        raise
    except yaml.YAMLError as e:
        raise PatchFormatError(str(e)).add_context(frame) from e
