"""Checklist completion and grocery list operations.

Every function returns a new value and leaves its arguments untouched; the
store commits the result.
"""

from collections import OrderedDict
from typing import Dict, List, Iterable

from kaio.models.plan import WeeklyPlan, GroceryItem, GroceryListEntry


def reset_completion(plan: WeeklyPlan) -> Dict[str, List[bool]]:
    """Fresh completion map: one False per checklist item for each day."""
    return {day_name: [False] * len(day.checklist) for day_name, day in plan.ordered_days()}


def toggle_completion(completion: List[bool], index: int) -> List[bool]:
    """Flip one checklist slot.

    Raises IndexError when the array has no slot for ``index``; arrays are
    sized from the checklist when a plan is installed.
    """
    if index < 0 or index >= len(completion):
        raise IndexError(f"checklist index {index} out of range ({len(completion)} items)")
    updated = list(completion)
    updated[index] = not updated[index]
    return updated


def completion_rate(completion: List[bool], total: int) -> float:
    """Percentage of completed items out of ``total``."""
    if total <= 0:
        return 0.0
    return sum(1 for done in completion if done) / total * 100


def normalize_category(category: str) -> str:
    return category.strip().lower()


def build_grocery_list(entries: Iterable[GroceryListEntry]) -> List[GroceryItem]:
    """Assign ids to a freshly generated grocery list."""
    return [
        GroceryItem(
            id=f"grocery-{index}", name=entry.name, category=normalize_category(entry.category), purchased=False
        )
        for index, entry in enumerate(entries)
    ]


def _update_item(items: List[GroceryItem], item_id: str, **changes) -> List[GroceryItem]:
    return [item.model_copy(update=changes) if item.id == item_id else item for item in items]


def toggle_grocery_item(items: List[GroceryItem], item_id: str) -> List[GroceryItem]:
    return [
        item.model_copy(update={"purchased": not item.purchased}) if item.id == item_id else item
        for item in items
    ]


def delete_grocery_item(items: List[GroceryItem], item_id: str) -> List[GroceryItem]:
    return [item for item in items if item.id != item_id]


def rename_grocery_item(items: List[GroceryItem], item_id: str, name: str) -> List[GroceryItem]:
    return _update_item(items, item_id, name=name)


def recategorize_grocery_item(items: List[GroceryItem], item_id: str, category: str) -> List[GroceryItem]:
    return _update_item(items, item_id, category=normalize_category(category))


def group_by_category(items: Iterable[GroceryItem]) -> Dict[str, List[GroceryItem]]:
    """Group items by lowercased category, keeping first-seen category order."""
    groups: Dict[str, List[GroceryItem]] = OrderedDict()
    for item in items:
        groups.setdefault(item.category.lower(), []).append(item)
    return dict(groups)
