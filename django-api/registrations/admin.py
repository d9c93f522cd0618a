import typing as t

from django.contrib import admin

from registrations.models import Event, Registration


class RegistrationInline(admin.TabularInline):
    model = Registration
    extra = 0
    fields = ["participant_id", "status", "decided_by", "decided_at"]
    readonly_fields = ["participant_id", "status", "decided_by", "decided_at"]
    can_delete = False


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["title", "capacity", "approved_count", "registration_deadline", "is_active"]
    search_fields = ["title", "organizer_id"]
    readonly_fields = ["approved_count"]
    inlines = [RegistrationInline]

    def get_readonly_fields(self, request: t.Any, obj: Event | None = None) -> list[str]:
        # Capacity is fixed once approvals can exist against it.
        if obj is not None:
            return [*self.readonly_fields, "capacity"]
        return list(self.readonly_fields)


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ["participant_id", "event", "status", "created_at", "decided_by"]
    list_filter = ["status", "event"]
    search_fields = ["participant_id"]
    # Status changes must go through the registration service.
    readonly_fields = ["status", "decided_by", "decided_at", "rejection_reason"]

    def has_delete_permission(self, request: t.Any, obj: Registration | None = None) -> bool:
        # Only pending rows hold no slot in the approved count.
        if obj is not None and obj.status != Registration.Status.PENDING:
            return False
        return super().has_delete_permission(request, obj)

    def get_actions(self, request: t.Any) -> dict[str, t.Any]:
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions
