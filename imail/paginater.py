"""Pagination calculations."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Page:
    """A page link; num is -1 for an ellipsis standing for hidden pages."""

    num: int
    is_current: bool


def _middle_index(num_pages: int) -> int:
    return num_pages // 2 if num_pages % 2 == 0 else num_pages // 2 + 1


class Paginater:
    """Pagination over total rows, paging_num rows per page.

    num_pages is how many page links pages() shows around the current page.
    """

    def __init__(self, total: int, paging_num: int, current: int, num_pages: int) -> None:
        self._total = total
        self._paging_num = paging_num if paging_num > 0 else 1
        self._current = current if current > 0 else 1
        self._num_pages = num_pages
        self._current = min(self._current, self.total_pages())

    def __repr__(self) -> str:
        return (
            f"Paginater(total={self._total}, paging_num={self._paging_num}, "
            f"current={self._current}, num_pages={self._num_pages})"
        )

    def is_first(self) -> bool:
        return self._current == 1

    def has_previous(self) -> bool:
        return self._current > 1

    def previous(self) -> int:
        return self._current - 1 if self.has_previous() else self._current

    def has_next(self) -> bool:
        return self._total > self._current * self._paging_num

    def next(self) -> int:
        return self._current + 1 if self.has_next() else self._current

    def is_last(self) -> bool:
        if self._total == 0:
            return True
        return self._total > (self._current - 1) * self._paging_num and not self.has_next()

    def total(self) -> int:
        return self._total

    def total_pages(self) -> int:
        if self._total == 0:
            return 1
        pages, rest = divmod(self._total, self._paging_num)
        return pages + 1 if rest else pages

    def current(self) -> int:
        return self._current

    def paging_num(self) -> int:
        return self._paging_num

    def pages(self) -> list[Page]:
        """Return the page links around the current page, with -1 for gaps."""
        total_pages = self.total_pages()
        current = self._current
        if self._num_pages == 0:
            return []
        if self._num_pages == 1 and total_pages == 1:
            return [Page(1, True)]
        if total_pages <= self._num_pages:
            return [Page(num, num == current) for num in range(1, total_pages + 1)]

        previous_num = min(_middle_index(self._num_pages) - 1, current - 1)
        next_num = self._num_pages - previous_num - 1
        if current + next_num > total_pages:
            delta = next_num - (total_pages - current)
            next_num -= delta
            previous_num += delta

        offset = current - previous_num
        pages: list[Page] = []
        if offset > 1:
            pages.append(Page(-1, False))
        pages.extend(Page(offset + i, False) for i in range(previous_num))
        pages.append(Page(current, True))
        pages.extend(Page(current + i, False) for i in range(1, next_num + 1))
        if current + next_num < total_pages:
            pages.append(Page(-1, False))
        return pages