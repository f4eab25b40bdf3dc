"""Project store package — the persistence facade and its default backend.

RULES:
- The worker only talks to ProjectStore; backends are swappable
- InMemoryStorage is the default backend
"""

from predictive_text_studio.storage.base import ProjectStore
from predictive_text_studio.storage.memory import InMemoryStorage

__all__ = ["InMemoryStorage", "ProjectStore"]
