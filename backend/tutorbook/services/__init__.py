"""Business logic services."""

from tutorbook.services.schedule_service import ScheduleService
from tutorbook.services.settings_service import SettingsService
from tutorbook.services.cart_service import CartService
from tutorbook.services.reservation_service import ReservationService, ReservationBatch
from tutorbook.services.notification_service import NotificationService

__all__ = [
    "ScheduleService",
    "SettingsService",
    "CartService",
    "ReservationService",
    "ReservationBatch",
    "NotificationService",
]
