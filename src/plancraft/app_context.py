# planCraft application context
# Rev 0.1.0

from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .query.params import QUERY_CLASSES
from .services.delete_policy import DeletePolicy
from .services.planning import PlanningServices
from .utils.config import load_settings, save_settings
from .utils.logging_setup import get_logger
from .viewmodels.list_viewmodel import ListViewModel
from .viewmodels.session_state import Binding, BindingChanged, SessionState, default_store_factory


@dataclass
class AppContext:
    """Central container for shared app resources."""
    settings: Dict[str, Any]
    session: SessionState
    services: PlanningServices
    settings_path: Optional[Path] = None

    @classmethod
    def create(cls, settings: Optional[Dict[str, Any]] = None, *,
               settings_path: Optional[Path] = None,
               delete_policy: Optional[DeletePolicy] = None,
               store_factory=None) -> "AppContext":
        """Load settings, open the last plan file (or a draft) and build the services."""
        log = get_logger("AppContext")
        if settings is None:
            settings = load_settings(settings_path)
        session = SessionState(store_factory or default_store_factory(settings))

        last = settings.get("session", {}).get("last_location")
        if last:
            try:
                session.switch_binding(Binding.bound(last))
            except Exception as e:
                log.error("Could not open %s, staying on draft: %s", last, e)

        services = PlanningServices.build(session, delete_policy=delete_policy)
        ctx = cls(settings=settings, session=session, services=services, settings_path=settings_path)
        session.bindingChanged.connect(ctx._remember_binding)
        log.info("AppContext initialized (%s)", session.current_binding().location or "draft")
        return ctx

    def list_viewmodel(self, table: str, **filters) -> ListViewModel:
        page_size = int(self.settings.get("query", {}).get("default_page_size", 20))
        query = replace(QUERY_CLASSES[table](), page_size=page_size, **filters)
        return ListViewModel(self.session, self.services.for_table(table), query)

    def _remember_binding(self, event: BindingChanged) -> None:
        self.settings.setdefault("session", {})["last_location"] = event.location
        save_settings(self.settings, self.settings_path)

    def close(self) -> None:
        self.session.close()
