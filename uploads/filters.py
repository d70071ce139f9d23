from django_filters import rest_framework as filters

from .models import UploadQueueJob


class UploadQueueJobFilterSet(filters.FilterSet):
    status = filters.CharFilter(field_name="status")
    file_name = filters.CharFilter(field_name="file_name", lookup_expr="icontains")

    class Meta:
        model = UploadQueueJob
        fields = ["status", "source", "upload_id", "file_name"]
