from .store import PageStore, StoreError, StoreLockedError, StoreClosedError
__all__ = ["PageStore", "StoreError", "StoreLockedError", "StoreClosedError"]
