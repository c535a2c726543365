"""API dependencies wiring storage, gateway and services."""

from typing import Annotated

from fastapi import Depends

from app.database import async_session_maker
from app.gateways.base import MobileMoneyGateway
from app.gateways.pawapay import PawaPayGateway
from app.repositories.base import Storage
from app.repositories.sqlalchemy_storage import SqlAlchemyStorage
from app.services.availability_service import AvailabilityChecker
from app.services.booking_service import BookingService
from app.services.checkout_service import CheckoutService
from app.services.notification_service import NotificationService, notification_service
from app.services.payout_service import PayoutProcessor
from app.services.reconciliation_service import ReconciliationEngine
from app.services.refund_service import RefundCalculator

_storage = SqlAlchemyStorage(async_session_maker)


def get_storage() -> Storage:
    """Storage backed by the application's session factory."""
    return _storage


def get_gateway() -> MobileMoneyGateway:
    """Mobile money gateway configured from settings."""
    return PawaPayGateway()


def get_notifier() -> NotificationService:
    return notification_service


StorageDep = Annotated[Storage, Depends(get_storage)]
GatewayDep = Annotated[MobileMoneyGateway, Depends(get_gateway)]
NotifierDep = Annotated[NotificationService, Depends(get_notifier)]


def get_reconciliation_engine(
    storage: StorageDep,
    gateway: GatewayDep,
    notifier: NotifierDep,
) -> ReconciliationEngine:
    return ReconciliationEngine(storage, gateway, notifier)


def get_refund_calculator(storage: StorageDep) -> RefundCalculator:
    return RefundCalculator(storage)


def get_payout_processor(storage: StorageDep, gateway: GatewayDep) -> PayoutProcessor:
    return PayoutProcessor(storage, gateway)


def get_availability_checker(storage: StorageDep) -> AvailabilityChecker:
    return AvailabilityChecker(storage)


def get_checkout_service(storage: StorageDep) -> CheckoutService:
    return CheckoutService(storage)


def get_booking_service(storage: StorageDep) -> BookingService:
    return BookingService(storage)
