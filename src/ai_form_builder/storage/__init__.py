from ai_form_builder.storage.base import FormStore
from ai_form_builder.storage.memory_store import InMemoryFormStore

__all__ = ["FormStore", "InMemoryFormStore"]
