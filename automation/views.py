from rest_framework import permissions, status, viewsets
from rest_framework.response import Response

from .models import SystemSetting
from .serializers import SystemSettingSerializer


class SystemSettingViewSet(viewsets.ModelViewSet):
    queryset = SystemSetting.objects.all().order_by("key")
    serializer_class = SystemSettingSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_field = "key"
    lookup_value_regex = "[^/]+"

    def update(self, request, *args, **kwargs):
        key = kwargs[self.lookup_field]
        if SystemSetting.objects.filter(key=key).exists():
            return super().update(request, *args, **kwargs)

        # PUT on an unknown key creates it.
        serializer = self.get_serializer(data={"key": key, "value": request.data.get("value")})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
