from django.contrib import admin

from .models import Course


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "publication_state", "student_count", "created_at")
    list_filter = ("publication_state",)
    search_fields = ("title",)
    readonly_fields = ("student_count",)
