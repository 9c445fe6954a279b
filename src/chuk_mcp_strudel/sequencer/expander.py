"""
Sequence expansion - flattens sequence items into bar uses.

    Single(p)             → (p x1)
    RepeatBar(3, p)       → (p x3)
    Group([a, b])         → a's uses then b's uses, no marker
    RepeatGroup(2, [a,b]) → nested Expansion(repeat=2) kept as a unit

Plain groups dissolve into their parent; repeated groups stay nested so
the repeat is rendered natively (\\repeat volta N / !N) rather than by
duplicating bars.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from chuk_mcp_strudel.models.sequence import (
    Group,
    RepeatBar,
    RepeatGroup,
    SequenceItem,
    Single,
)


@dataclass(frozen=True)
class BarUse:
    """One pattern bar and how many times it plays in a row."""

    pattern_name: str
    count: int = 1

    @property
    def played_bars(self) -> int:
        return self.count

    def to_dict(self) -> dict[str, Any]:
        return {"pattern": self.pattern_name, "count": self.count}


@dataclass(frozen=True)
class Expansion:
    """Ordered bar uses played repeat times as a unit."""

    bars: tuple[Union[BarUse, Expansion], ...]
    repeat: int = 1

    @property
    def played_bars(self) -> int:
        return sum(b.played_bars for b in self.bars) * self.repeat

    def pattern_uses(self) -> list[BarUse]:
        """Bar uses in written order, nested groups visited once."""
        uses: list[BarUse] = []
        for bar in self.bars:
            if isinstance(bar, Expansion):
                uses.extend(bar.pattern_uses())
            else:
                uses.append(bar)
        return uses

    def to_dict(self) -> dict[str, Any]:
        return {
            "repeat": self.repeat,
            "played_bars": self.played_bars,
            "bars": [b.to_dict() for b in self.bars],
        }


def _expand_children(items: list[SequenceItem]) -> tuple[Union[BarUse, Expansion], ...]:
    bars: list[Union[BarUse, Expansion]] = []
    for child in items:
        expansion = expand_item(child)
        if not expansion.bars:
            continue
        if expansion.repeat == 1:
            bars.extend(expansion.bars)
        else:
            bars.append(expansion)
    return tuple(bars)


def expand_item(item: SequenceItem) -> Expansion:
    """
    Expand one sequence item.

    Args:
        item: Single, RepeatBar, Group or RepeatGroup

    Returns:
        Expansion whose repeat is 1 except for repeated groups
    """
    if isinstance(item, Single):
        return Expansion((BarUse(item.bar.pattern_name, 1),))
    if isinstance(item, RepeatBar):
        return Expansion((BarUse(item.bar.pattern_name, item.count),))
    if isinstance(item, Group):
        return Expansion(_expand_children(item.items))
    if isinstance(item, RepeatGroup):
        return Expansion(_expand_children(item.items), item.count)
    raise TypeError(f"Unknown sequence item: {type(item).__name__}")
