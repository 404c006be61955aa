from .list_viewmodel import ListViewModel
from .session_state import Binding, BindingChanged, SessionState, default_store_factory

__all__ = ["Binding", "BindingChanged", "ListViewModel", "SessionState", "default_store_factory"]
