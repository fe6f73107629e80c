# Core modules

from .config import settings
from .environment import Environment, MemoryStorage, FileStorage

__all__ = ["settings", "Environment", "MemoryStorage", "FileStorage"]
