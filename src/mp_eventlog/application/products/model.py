"""Products – Product aggregate state."""
from __future__ import annotations

import dataclasses
from typing import Any

from mp_eventlog.kernel.errors import ValidationError

__all__ = ["Product"]

NAME_MAX_LENGTH = 120
DESCRIPTION_MAX_LENGTH = 500


@dataclasses.dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str = ""
    price: float = 0.0

    def validate(self) -> "Product":
        """Return ``self`` or raise :class:`ValidationError` listing every failed rule."""
        violations: dict[str, str] = {}
        if not self.id or not self.id.strip():
            violations["id"] = "Product id is required"
        if not self.name or not self.name.strip():
            violations["name"] = "Name is required"
        elif len(self.name) > NAME_MAX_LENGTH:
            violations["name"] = "Name too long"
        if len(self.description or "") > DESCRIPTION_MAX_LENGTH:
            violations["description"] = "Description too long"
        if self.price < 0:
            violations["price"] = "Price must be >= 0"
        if violations:
            raise ValidationError("product", violations)
        return self

    def to_state(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_state(cls, state: dict[str, Any]) -> "Product":
        return cls(
            id=state["id"],
            name=state["name"],
            description=state.get("description") or "",
            price=float(state.get("price", 0.0)),
        )
