from scheduling.services.session_service import SessionService

__all__ = ["SessionService"]
