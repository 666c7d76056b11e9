from __future__ import annotations

from abc import ABC, abstractmethod

from .context import ExpenseContext
from .models import ExpenseLineItem, LineType


class ExpenseSource(ABC):
    line_type: LineType
    title: str

    def __init__(self):
        if not getattr(self, "line_type", None):
            raise ValueError("ExpenseSource must define line_type")

    @abstractmethod
    def collect(self, ctx: ExpenseContext) -> list[ExpenseLineItem]:  # pragma: no cover
        raise NotImplementedError


def format_quantity(quantity) -> str:
    return f"{quantity:,.0f}"
