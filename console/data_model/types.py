from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping


@dataclass(frozen=True)
class TypeDescriptor:
    """A column type offered by the table builder and its secondary attributes."""

    type_name: str
    has_size: bool = False
    size: int | None = None
    has_digit: bool = False
    has_values: bool = False
    has_bool: bool = False
    has_auto_increment: bool = False
    auto_increment: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TypeDescriptor":
        size = payload.get("size")
        return cls(
            type_name=str(payload.get("type") or "").strip(),
            has_size=bool(payload.get("hasSize")),
            size=int(size) if size not in (None, "") else None,
            has_digit=bool(payload.get("hasDigit")),
            has_values=bool(payload.get("hasValues")),
            has_bool=bool(payload.get("hasBool")),
            has_auto_increment=bool(payload.get("hasAutoIncrement")),
            auto_increment=bool(payload.get("autoIncrement")),
        )

    def with_size(self, size: int | None) -> "TypeDescriptor":
        if not self.has_size:
            raise ValueError(f"{self.type_name} does not take a size")
        if size is not None and size < 1:
            raise ValueError("Size must be a positive number")
        return replace(self, size=size)

    def with_auto_increment(self, enabled: bool) -> "TypeDescriptor":
        if not self.has_auto_increment:
            raise ValueError(f"{self.type_name} does not support auto increment")
        return replace(self, auto_increment=bool(enabled))

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type_name, "hasSize": self.has_size}
        if self.has_size and self.size:
            payload["size"] = self.size
        if self.has_digit:
            payload["hasDigit"] = True
        if self.has_values:
            payload["hasValues"] = True
        if self.has_bool:
            payload["hasBool"] = True
        if self.has_auto_increment:
            payload["hasAutoIncrement"] = True
            payload["autoIncrement"] = self.auto_increment
        return payload


@dataclass(frozen=True)
class DataTypeCatalog:
    numeric: tuple[TypeDescriptor, ...] = ()
    string: tuple[TypeDescriptor, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DataTypeCatalog":
        return cls(
            numeric=tuple(TypeDescriptor.from_payload(item) for item in payload.get("numericType") or []),
            string=tuple(TypeDescriptor.from_payload(item) for item in payload.get("stringType") or []),
        )

    @property
    def types(self) -> List[TypeDescriptor]:
        return [*self.numeric, *self.string]

    @property
    def type_names(self) -> List[str]:
        return [item.type_name for item in self.types]

    def find(self, type_name: str) -> TypeDescriptor:
        """Catalog entry for ``type_name``, or the first entry when unknown."""
        types = self.types
        if not types:
            raise LookupError("The data type catalog is empty")
        for item in types:
            if item.type_name == type_name:
                return item
        return types[0]
