from __future__ import annotations

from collections.abc import Iterable

from backend.app.services.domain import Table


def rank_tables(party_size: int, tables: Iterable[Table]) -> list[Table]:
    """Tables that seat ``party_size``, smallest capacity first.

    The sort is stable, so tables of equal capacity keep the order the
    inventory was listed in (the store lists by table name).
    """
    suitable = [t for t in tables if t.capacity >= party_size]
    suitable.sort(key=lambda t: t.capacity)
    return suitable


def select_table(party_size: int, tables: Iterable[Table]) -> Table | None:
    """Best-fit table for the party regardless of time, or None if none fits."""
    ranked = rank_tables(party_size, tables)
    return ranked[0] if ranked else None
