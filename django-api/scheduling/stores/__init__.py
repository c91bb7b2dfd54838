from scheduling.stores.interfaces import SessionStore

__all__ = ["SessionStore"]
