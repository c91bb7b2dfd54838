from django.contrib import admin

from scheduling.models import SessionInstance, SessionParticipant, SessionTemplate


class SessionParticipantInline(admin.TabularInline):
    model = SessionParticipant
    extra = 0
    readonly_fields = ["timeslot_id", "user_id", "joined_at", "is_waitlisted"]


@admin.register(SessionTemplate)
class SessionTemplateAdmin(admin.ModelAdmin):
    list_display = ["name", "club_id", "recurrence", "is_active", "created_at"]
    list_filter = ["recurrence", "is_active"]
    search_fields = ["name", "club_id"]
    readonly_fields = ["next_scheduled_id", "next_window_start", "deactivation_task_id"]


@admin.register(SessionInstance)
class SessionInstanceAdmin(admin.ModelAdmin):
    list_display = ["name", "club_id", "instance_date", "status"]
    list_filter = ["status"]
    search_fields = ["name", "club_id"]
    readonly_fields = ["start_task_id", "end_task_id"]
    inlines = [SessionParticipantInline]


@admin.register(SessionParticipant)
class SessionParticipantAdmin(admin.ModelAdmin):
    list_display = ["user_id", "instance", "timeslot_id", "is_waitlisted", "joined_at"]
    list_filter = ["is_waitlisted"]
