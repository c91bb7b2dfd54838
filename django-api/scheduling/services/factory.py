"""Wires the session service to its production store and timers."""

from django.conf import settings

from scheduling.services.session_service import SessionService
from scheduling.stores.django_store import DjangoSessionStore
from scheduling.timers.celery_timers import CeleryTaskScheduler


def build_session_service() -> SessionService:
    return SessionService(
        DjangoSessionStore(),
        CeleryTaskScheduler(),
        max_instances=settings.SCHEDULING_MAX_GENERATED_INSTANCES,
    )
