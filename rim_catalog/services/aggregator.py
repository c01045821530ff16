"""Fold flat inventory rows into sellable wheel groups.

Groups are always recomputed from the whole row buffer. Nothing here keeps
state between calls, so there is no aggregate that can go stale.
"""

import json
from collections.abc import Iterable

from rim_catalog.core.enums import GROUP_COLUMNS
from rim_catalog.models.wheel import InventoryRow, WheelGroup


def group_key(row: InventoryRow) -> str:
    """Serialize (model, size, bolt_pattern, finish) into a stable key.

    A JSON array keeps values containing separators from colliding.
    """
    return json.dumps([getattr(row, col) for col in GROUP_COLUMNS], ensure_ascii=False)


def aggregate(rows: Iterable[InventoryRow]) -> list[WheelGroup]:
    """Group rows by key, in first-seen order.

    Brand comes from the first member only. Rows with empty key fields still
    form a group; nothing is ever dropped. The output is not sorted, see
    ``sort_groups_by_model``.
    """
    groups: dict[str, WheelGroup] = {}
    seen_tags: dict[str, set[str]] = {}

    for row in rows:
        key = group_key(row)
        group = groups.get(key)
        if group is None:
            group = WheelGroup(
                group_key=key,
                model=row.model,
                brand=row.brand,
                size=row.size,
                bolt_pattern=row.bolt_pattern,
                finish=row.finish,
            )
            groups[key] = group
            seen_tags[key] = set()

        group.members.append(row)

        tags = seen_tags[key]
        for defect in row.defects:
            if defect not in tags:
                tags.add(defect)
                group.defect_tags.append(defect)

    return list(groups.values())


def sort_groups_by_model(groups: Iterable[WheelGroup]) -> list[WheelGroup]:
    """Alphabetical by model, ties kept stable by key."""
    return sorted(groups, key=lambda g: (g.model.casefold(), g.group_key))
