"""
Records produced by the gamepass aggregation pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Universe:
    """A public game (universe) owned by a Roblox user."""

    id: int
    name: str = ""

    @classmethod
    def from_api(cls, payload: Any) -> Optional["Universe"]:
        """Build from a games API entry; None when the entry has no usable id."""
        if not isinstance(payload, dict):
            return None
        universe_id = _as_int(payload.get("id"))
        if universe_id is None:
            return None
        return cls(id=universe_id, name=str(payload.get("name") or ""))


@dataclass
class Gamepass:
    """A purchasable game pass.

    ``icon_image_url`` starts empty and is assigned once by icon enrichment.
    """

    id: int
    name: str
    price: int = 0
    icon_image_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the public JSON shape."""
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "iconImageUrl": self.icon_image_url,
        }

    @classmethod
    def from_api(cls, payload: Any) -> Optional["Gamepass"]:
        """Build from a game-passes API entry; None when the entry has no usable id."""
        if not isinstance(payload, dict):
            return None
        pass_id = _as_int(payload.get("id"))
        if pass_id is None:
            return None
        return cls(
            id=pass_id,
            name=str(payload.get("name") or ""),
            price=_as_int(payload.get("price")) or 0,
        )


def _as_int(value: Any) -> Optional[int]:
    # bool is an int subclass but never a valid id or price
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None
