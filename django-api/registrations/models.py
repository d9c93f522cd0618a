"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models
from django.db.models import Q


class Event(models.Model):
    """Persistence model for events.

    Only the registration workflow writes approved_count.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    capacity = models.PositiveIntegerField()
    approved_count = models.PositiveIntegerField(default=0)
    registration_deadline = models.DateTimeField()
    is_active = models.BooleanField(default=True)
    organizer_id = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="event_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(capacity__gte=1), name="event_capacity_positive"),
        ]

    def __str__(self) -> str:
        return self.title

    @property
    def is_full(self) -> bool:
        return self.approved_count >= self.capacity


class Registration(models.Model):
    """Persistence model for registrations."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        CANCELLED = "cancelled", "Cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="registrations")
    participant_id = models.CharField(max_length=255)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    note = models.TextField(blank=True, default="")
    decided_by = models.CharField(max_length=255, blank=True, null=True)
    decided_at = models.DateTimeField(blank=True, null=True)
    rejection_reason = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "status"], name="registration_event_status_idx"),
            models.Index(fields=["participant_id", "-created_at"], name="registration_participant_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "participant_id"],
                condition=Q(status__in=["pending", "approved"]),
                name="unique_active_registration",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.participant_id} - {self.event.title} ({self.status})"
