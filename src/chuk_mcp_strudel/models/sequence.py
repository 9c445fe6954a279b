"""
Bar sequence model - compositions built from library patterns.

Sequence files are YAML with externally tagged items:

    tempo: 120
    sequence:
      - description: intro
        item:
          Single: {pattern_name: kick}
      - description: groove
        item:
          RepeatBar: [3, {pattern_name: groove}]
      - description: fill section
        item:
          RepeatGroup:
            - 2
            - - Single: {pattern_name: groove}
              - Single: {pattern_name: fill}

Group takes a list of items directly: {Group: [...]}.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, Field


class BarRef(BaseModel):
    """Reference to one library pattern."""

    pattern_name: str = Field(..., min_length=1, description="Library pattern name")

    model_config = {"frozen": True}


class Single(BaseModel):
    """One bar from a pattern."""

    kind: Literal["Single"] = "Single"
    bar: BarRef

    model_config = {"frozen": True}


class RepeatBar(BaseModel):
    """One pattern bar played count times."""

    kind: Literal["RepeatBar"] = "RepeatBar"
    count: int = Field(..., ge=1, description="Times the bar is played")
    bar: BarRef

    model_config = {"frozen": True}


class Group(BaseModel):
    """Items played in order, without repetition."""

    kind: Literal["Group"] = "Group"
    items: list[SequenceItem] = Field(default_factory=list)

    model_config = {"frozen": True}


class RepeatGroup(BaseModel):
    """Items played in order, the whole group count times."""

    kind: Literal["RepeatGroup"] = "RepeatGroup"
    count: int = Field(..., ge=1, description="Times the group is played")
    items: list[SequenceItem] = Field(default_factory=list)

    model_config = {"frozen": True}


SequenceItem = Union[Single, RepeatBar, Group, RepeatGroup]

Group.model_rebuild()
RepeatGroup.model_rebuild()


def item_from_yaml(data: Any) -> SequenceItem:
    """
    Build a SequenceItem from its externally tagged YAML form.

    Raises:
        ValueError: If the mapping is not a single known tag
    """
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"Sequence item must be a single-key mapping, got {data!r}")
    tag, value = next(iter(data.items()))

    if tag == "Single":
        return Single(bar=_bar_ref(value))
    if tag == "RepeatBar":
        count, bar = _count_and_body(tag, value)
        return RepeatBar(count=count, bar=_bar_ref(bar))
    if tag == "Group":
        return Group(items=[item_from_yaml(v) for v in _as_list(tag, value)])
    if tag == "RepeatGroup":
        count, items = _count_and_body(tag, value)
        return RepeatGroup(count=count, items=[item_from_yaml(v) for v in _as_list(tag, items)])
    raise ValueError(f"Unknown sequence item: {tag}")


def item_to_yaml(item: SequenceItem) -> dict[str, Any]:
    """Externally tagged YAML form of an item."""
    if isinstance(item, Single):
        return {"Single": {"pattern_name": item.bar.pattern_name}}
    if isinstance(item, RepeatBar):
        return {"RepeatBar": [item.count, {"pattern_name": item.bar.pattern_name}]}
    if isinstance(item, Group):
        return {"Group": [item_to_yaml(i) for i in item.items]}
    return {"RepeatGroup": [item.count, [item_to_yaml(i) for i in item.items]]}


def _bar_ref(value: Any) -> BarRef:
    if isinstance(value, str):
        return BarRef(pattern_name=value)
    if isinstance(value, dict):
        return BarRef(**value)
    raise ValueError(f"Invalid bar reference: {value!r}")


def _count_and_body(tag: str, value: Any) -> tuple[int, Any]:
    if not isinstance(value, list) or len(value) != 2:
        raise ValueError(f"{tag} expects [count, body], got {value!r}")
    return value[0], value[1]


def _as_list(tag: str, value: Any) -> list[Any]:
    if not isinstance(value, list):
        raise ValueError(f"{tag} expects a list of items, got {value!r}")
    return value


class SequenceEntry(BaseModel):
    """A top-level sequence item with its description."""

    item: SequenceItem = Field(..., discriminator="kind")
    description: str = Field("", description="Shown as a comment in LilyPond output")

    model_config = {"frozen": True}


class BarSequence(BaseModel):
    """A full composition: tempo plus described items."""

    tempo: int = Field(..., gt=0, description="Quarter notes per minute")
    sequence: list[SequenceEntry] = Field(default_factory=list)

    model_config = {"frozen": True}

    def pattern_names(self) -> list[str]:
        """Distinct referenced pattern names in first-use order."""
        names: list[str] = []

        def visit(item: SequenceItem) -> None:
            if isinstance(item, (Single, RepeatBar)):
                if item.bar.pattern_name not in names:
                    names.append(item.bar.pattern_name)
            else:
                for child in item.items:
                    visit(child)

        for entry in self.sequence:
            visit(entry.item)
        return names

    def to_yaml_dict(self) -> dict[str, Any]:
        return {
            "tempo": self.tempo,
            "sequence": [
                {"description": e.description, "item": item_to_yaml(e.item)}
                for e in self.sequence
            ],
        }

    @classmethod
    def from_yaml_dict(cls, data: dict[str, Any]) -> BarSequence:
        """
        Create a BarSequence from a YAML-parsed dict.

        This parses the externally tagged item format.
        """
        return cls(
            tempo=data["tempo"],
            sequence=[
                SequenceEntry(
                    item=item_from_yaml(entry["item"]),
                    description=entry.get("description", "") or "",
                )
                for entry in data.get("sequence") or []
            ],
        )
