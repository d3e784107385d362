"""User selection of task rows on the visible page."""

from collections.abc import Iterable


class SelectionManager:
    """Tracks selected task ids.

    The owner prunes it whenever a page is installed wholesale; optimistic
    patches never touch it, so a record being mutated stays selected.
    """

    def __init__(self) -> None:
        self._selected: set[int] = set()

    @property
    def selected(self) -> frozenset[int]:
        return frozenset(self._selected)

    def is_selected(self, task_id: int) -> bool:
        return task_id in self._selected

    def toggle_one(self, task_id: int) -> bool:
        """Flip one id and return whether it is now selected."""
        if task_id in self._selected:
            self._selected.remove(task_id)
            return False
        self._selected.add(task_id)
        return True

    def toggle_all_on_page(self, ids: Iterable[int]) -> None:
        """Select every id on the page, or deselect them all if all were already selected."""
        page_ids = set(ids)
        if page_ids and page_ids <= self._selected:
            self._selected -= page_ids
        else:
            self._selected |= page_ids

    def prune(self, ids: Iterable[int]) -> None:
        """Drop any selected id that is not in ``ids``."""
        self._selected &= set(ids)

    def clear(self) -> None:
        self._selected.clear()
