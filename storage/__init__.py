from storage.db import CursorStore, ItemCache, Storage

__all__ = ["CursorStore", "ItemCache", "Storage"]
