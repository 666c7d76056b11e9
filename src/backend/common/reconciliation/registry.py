from __future__ import annotations

from typing import Dict, Type

from .models import LineType
from .source import ExpenseSource


class ExpenseSourceRegistry:
    def __init__(self):
        self._sources: Dict[LineType, Type[ExpenseSource]] = {}

    def register(self, source_cls: Type[ExpenseSource]) -> None:
        line_type = getattr(source_cls, "line_type", None)
        if not line_type:
            raise ValueError("ExpenseSource class missing line_type")
        if line_type in self._sources:
            raise ValueError(f"Duplicate expense source registered: {line_type.value}")
        self._sources[line_type] = source_cls

    def create_all(self) -> list[ExpenseSource]:
        return [cls() for cls in self._sources.values()]


registry = ExpenseSourceRegistry()


def register_source(source_cls: Type[ExpenseSource]) -> Type[ExpenseSource]:
    registry.register(source_cls)
    return source_cls
