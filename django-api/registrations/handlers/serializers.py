"""Serializers for transforming domain models to API responses and parsing input."""

from rest_framework import serializers

from registrations.domain import RegistrationStatus


class RegistrationSerializer(serializers.Serializer):
    """Serializer for Registration domain model."""

    id = serializers.CharField(source="id.value")
    event_id = serializers.CharField(source="event_id.value")
    participant_id = serializers.CharField()
    status = serializers.CharField(source="status.value")
    note = serializers.CharField()
    created_at = serializers.DateTimeField()
    decided_by = serializers.CharField(allow_null=True)
    decided_at = serializers.DateTimeField(allow_null=True)
    rejection_reason = serializers.CharField(allow_null=True)


class RegistrationStatsSerializer(serializers.Serializer):
    """Serializer for RegistrationStats domain model."""

    total = serializers.IntegerField()
    pending = serializers.IntegerField()
    approved = serializers.IntegerField()
    rejected = serializers.IntegerField()
    cancelled = serializers.IntegerField()


class OrganizerStatsSerializer(serializers.Serializer):
    """Serializer for OrganizerStats, flattening the per-status totals."""

    total_events = serializers.IntegerField()
    total = serializers.IntegerField(source="registrations.total")
    pending = serializers.IntegerField(source="registrations.pending")
    approved = serializers.IntegerField(source="registrations.approved")
    rejected = serializers.IntegerField(source="registrations.rejected")
    cancelled = serializers.IntegerField(source="registrations.cancelled")


class ReconciliationResultSerializer(serializers.Serializer):
    event_id = serializers.CharField(source="event_id.value")
    previous_count = serializers.IntegerField()
    approved_count = serializers.IntegerField()
    drifted = serializers.BooleanField()


class RegisterInputSerializer(serializers.Serializer):
    event_id = serializers.CharField()
    note = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=True)


class RejectInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=True)


class StatusFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[status.value for status in RegistrationStatus], required=False)

    def validated_status(self) -> RegistrationStatus | None:
        value = self.validated_data.get("status")
        return RegistrationStatus(value) if value else None
