# Rev 0.1.2 - page cache + clamp once total is known (empty results included)
from __future__ import annotations

import math
from dataclasses import replace
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QObject, Signal

from plancraft.models.errors import StoreClosedError, ValidationError
from plancraft.query.engine import ListResult
from plancraft.query.params import QUERY_CLASSES, QueryParams
from plancraft.utils.logging_setup import get_logger


class ListViewModel(QObject):
    """
    One list screen: a typed query, a cache of fetched pages, and the reload rules.

    Emits:
      rowsReloaded(total, items)
      pageChanged(page)   when the page is reset or clamped
      loadFailed(message)
    """
    rowsReloaded = Signal(int, object)
    pageChanged = Signal(int)
    loadFailed = Signal(str)

    def __init__(self, session, service, query: Optional[QueryParams] = None):
        super().__init__()
        self._log = get_logger("ListViewModel")
        self._session = session
        self._service = service
        self._query: QueryParams = query if query is not None else _default_query(service)
        self._pages: Dict[int, ListResult] = {}
        self._total = 0
        self._items: List[Any] = []

        session.bindingChanged.connect(self._on_binding_changed)
        session.dataChanged.connect(self._on_data_changed)

    # ---- state
    @property
    def query(self) -> QueryParams:
        return self._query

    @property
    def total(self) -> int:
        return self._total

    @property
    def items(self) -> List[Any]:
        return list(self._items)

    @property
    def page(self) -> int:
        return self._query.page

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self._total / self._query.page_size))

    def cached_pages(self) -> List[int]:
        return sorted(self._pages)

    # ---- filters / paging
    def set_query(self, query: QueryParams) -> None:
        self._query = query
        self._pages.clear()
        self.reload()

    def set_filters(self, **changes) -> None:
        self.set_query(replace(self._query, page=1, **changes))

    def set_page(self, page: int) -> None:
        self._query = replace(self._query, page=page)
        self.reload()

    def set_page_size(self, page_size: int) -> None:
        self.set_query(replace(self._query, page=1, page_size=page_size))

    # ---- queries
    def reload(self) -> None:
        page = self._query.page
        cached = self._pages.get(page)
        if cached is None:
            try:
                cached = self._service.list(self._query)
            except (ValidationError, StoreClosedError) as e:
                self._log.warning("List of %s failed: %s", self._service.table, e)
                self.loadFailed.emit(str(e))
                return
            if not cached.data and page > 1:
                last = max(1, cached.pages)
                self._log.debug("Page %s beyond %s page(s); clamping", page, last)
                self._query = replace(self._query, page=last)
                self.pageChanged.emit(last)
                self.reload()
                return
            self._pages[page] = cached
        self._total = cached.total
        self._items = list(cached.data)
        self.rowsReloaded.emit(self._total, self.items)

    # ---- session notifications
    def _on_binding_changed(self, _event) -> None:
        self._pages.clear()
        if self._query.page != 1:
            self._query = replace(self._query, page=1)
            self.pageChanged.emit(1)
        self.reload()

    def _on_data_changed(self, entity_type: str) -> None:
        if entity_type != self._service.table:
            return
        self._pages.clear()
        self.reload()


def _default_query(service) -> QueryParams:
    return QUERY_CLASSES[service.table]()
