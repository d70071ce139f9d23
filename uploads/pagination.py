from rest_framework import pagination
from rest_framework.response import Response


class UploadQueuePagination(pagination.LimitOffsetPagination):
    default_limit = 20
    max_limit = 200

    def get_paginated_response(self, data):
        return Response({"data": data, "total": self.count})

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "data": schema,
                "total": {"type": "integer"},
            },
        }
