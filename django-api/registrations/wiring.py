"""Builds services on top of the Django-backed stores."""

from registrations.services.notifier import change_notifier
from registrations.services.registration_service import RegistrationService
from registrations.stores.django_store import (
    DjangoAuthorizer,
    DjangoCapacityLedger,
    DjangoEventProvider,
    DjangoRegistrationStore,
)


def build_registration_service() -> RegistrationService:
    return RegistrationService(
        store=DjangoRegistrationStore(),
        ledger=DjangoCapacityLedger(),
        events=DjangoEventProvider(),
        authorizer=DjangoAuthorizer(),
        notifier=change_notifier,
    )
