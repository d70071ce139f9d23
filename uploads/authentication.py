import hmac

from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from rest_framework import authentication, exceptions

API_KEY_HEADER = "X-API-Key"


class ProcessorAPIKeyAuthentication(authentication.BaseAuthentication):
    """Shared-secret check for the queue processor endpoint.

    Unlike most authentication classes this one never falls through: a
    missing or wrong key is rejected outright.
    """

    def authenticate(self, request):
        expected = getattr(settings, "PROCESSOR_API_KEY", "") or ""
        provided = request.headers.get(API_KEY_HEADER) or ""
        if not expected or not provided:
            raise exceptions.AuthenticationFailed("Unauthorized")
        if not hmac.compare_digest(provided.encode(), expected.encode()):
            raise exceptions.AuthenticationFailed("Unauthorized")
        return AnonymousUser(), provided

    def authenticate_header(self, request):
        return API_KEY_HEADER
