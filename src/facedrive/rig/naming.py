"""Blendshape naming-convention grammar.

A name is split on ``_`` into tokens.  A trailing token of one or two
upper-case letters is the side suffix (``L``, ``R``, ``LR`` ...).  Every other
token must look like ``[a-z][a-zA-Z]+`` followed by an optional one or two digit
percentage.  Then:

=====================  ==========================  ======================
Kind                   Example                     Equivalent pattern
=====================  ==========================  ======================
direct                 ``jawOpen``, ``mouthSmile_L``  ``^([a-z][a-zA-Z]+)(_([A-Z]{1,2}))?$``
in-between             ``mouthSmile25_L``          ``^([a-z][a-zA-Z]+)([0-9]{1,2})(_[A-Z]{1,2})?$``
corrective             ``jawOpen_mouthSmile25_L``  two or more tokens plus optional suffix
=====================  ==========================  ======================

The three kinds are mutually exclusive; anything else is unclassified.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Union

from facedrive.constants import FULL_PERCENT

_TOKEN_RE = re.compile(r"^([a-z][a-zA-Z]+)([0-9]{1,2})?$")
_SUFFIX_RE = re.compile(r"^[A-Z]{1,2}$")


class NameKind(Enum):
    DIRECT = auto()
    INBETWEEN = auto()
    CORRECTIVE = auto()


@dataclass(frozen=True)
class Driver:
    """A direct (pass-through) blendshape: base name plus optional side suffix."""
    name: str
    suffix: str = ""

    def __str__(self) -> str:
        return f"{self.name}_{self.suffix}" if self.suffix else self.name


@dataclass(frozen=True)
class InbwMatch:
    """An in-between reference: the driver it follows and its peak percentage.

    ``driver`` is the full driver name (with suffix) for in-between shapes, and
    the bare token for tokens inside a corrective.  ``value`` is 100 for a
    plain driver token.
    """
    value: int
    driver: str

    def __str__(self) -> str:
        return self.driver if self.value == FULL_PERCENT else f"{self.driver}{self.value}"


@dataclass(frozen=True)
class CorrMatch:
    """A corrective: the tokens it multiplies plus the shared side suffix."""
    suffix: str
    drivers: tuple[InbwMatch, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        joined = "_".join(str(d) for d in self.drivers)
        return f"{joined}_{self.suffix}" if self.suffix else joined


NameMatch = Union[Driver, InbwMatch, CorrMatch]


def _tokenize(name: str) -> Optional[tuple[list[tuple[str, Optional[int]]], str]]:
    """Split ``name`` into ``(base, percent)`` tokens and a suffix, or None."""
    parts = name.split("_")
    suffix = ""
    if len(parts) > 1 and _SUFFIX_RE.match(parts[-1]):
        suffix = parts.pop()

    tokens = []
    for part in parts:
        m = _TOKEN_RE.match(part)
        if m is None:
            return None
        tokens.append((m.group(1), int(m.group(2)) if m.group(2) is not None else None))
    return tokens, suffix


def classify(name: str) -> Optional[tuple[NameKind, NameMatch]]:
    """Classify a blendshape name.  Returns None when no pattern applies."""
    lexed = _tokenize(name)
    if lexed is None:
        return None
    tokens, suffix = lexed

    if len(tokens) == 1:
        base, percent = tokens[0]
        if percent is None:
            return NameKind.DIRECT, Driver(base, suffix)
        driver = f"{base}_{suffix}" if suffix else base
        return NameKind.INBETWEEN, InbwMatch(percent, driver)

    drivers = tuple(
        InbwMatch(FULL_PERCENT if percent is None else percent, base)
        for base, percent in tokens
    )
    return NameKind.CORRECTIVE, CorrMatch(suffix, drivers)


def match_direct(name: str) -> Optional[Driver]:
    result = classify(name)
    if result is None or result[0] is not NameKind.DIRECT:
        return None
    return result[1]


def match_inbw(name: str, include_direct: bool = False) -> Optional[InbwMatch]:
    """Match an in-between name; with ``include_direct`` a direct name matches at 100%."""
    result = classify(name)
    if result is None:
        return None
    kind, match = result
    if kind is NameKind.INBETWEEN:
        return match
    if include_direct and kind is NameKind.DIRECT:
        return InbwMatch(FULL_PERCENT, name)
    return None


def match_corr(name: str) -> Optional[CorrMatch]:
    result = classify(name)
    if result is None or result[0] is not NameKind.CORRECTIVE:
        return None
    return result[1]
