from django.contrib import admin

from .models import UploadQueueJob


@admin.register(UploadQueueJob)
class UploadQueueJobAdmin(admin.ModelAdmin):
    list_display = ("file_name", "status", "source", "upload_date", "completed_date")
    list_filter = ("status", "source")
    search_fields = ("file_name", "file_path", "upload_id")
    readonly_fields = ("id", "file_path", "upload_date", "updated_at", "completed_date")
