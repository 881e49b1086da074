from django.contrib import admin

from .models import Enrollment


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("id", "user_id", "course", "enrolled_at")
    search_fields = ("user_id", "course__title")
    list_select_related = ("course",)

    # Rows are owned by EnrollmentService; editing here would skip the
    # student_count bookkeeping.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
