"""libkfm.selector

Which ids a patch instruction targets.

On the wire a selector is either a bare integer (one literal id) or a string
wrapped in slashes, "/<regex>/", matched against the decimal text of each
candidate id. The regex is not anchored: "/1/" matches 1, 10 and 21.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Pattern, Set, Union

from .errors import PatchFormatError


@dataclass(frozen=True)
class LiteralId:
    value: int

    def resolve(self, available_ids: Iterable[int]) -> Set[int]:
        return {i for i in available_ids if i == self.value}

    def to_wire(self) -> int:
        return self.value


@dataclass(frozen=True)
class PatternId:
    pattern: Pattern[str]

    def resolve(self, available_ids: Iterable[int]) -> Set[int]:
        return {i for i in available_ids if self.pattern.search(str(i))}

    def to_wire(self) -> str:
        return f"/{self.pattern.pattern}/"


IdSelector = Union[LiteralId, PatternId]


def resolve(selector: IdSelector, available_ids: Iterable[int]) -> Set[int]:
    return selector.resolve(available_ids)


def parse_selector(value) -> IdSelector:
    """Build a selector from its patch-file value."""
    if isinstance(value, bool):
        raise PatchFormatError(f"expected an id or /regex/, got {value!r}")
    if isinstance(value, int):
        return LiteralId(value)
    if isinstance(value, str):
        if len(value) >= 2 and value.startswith("/") and value.endswith("/"):
            try:
                return PatternId(re.compile(value[1:-1]))
            except re.error as e:
                raise PatchFormatError(f"bad regex {value!r}: {e}") from e
        if value.strip().isascii() and value.strip().isdecimal():
            return LiteralId(int(value))
    raise PatchFormatError(f"expected an id or /regex/, got {value!r}")
