from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.views import TokenObtainPairView
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError

from orgs.context import OrganizationContext


def _user_payload(request, user):
    ctx = getattr(request, 'org_context', None) or OrganizationContext.from_request(request)
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'current_organization_id': ctx.current_organization_id(),
        'default_organization_id': ctx.default_organization_id(),
    }


class MeView(APIView):
    """Authenticated user info, organization context and profile update.

    GET: auth status, a brief user object and the resolved current/default organization ids.
    In DEBUG, allows anonymous (for SPA bootstrapping).
    PATCH: updates selected profile fields for the authenticated user (always requires auth).
    """

    def get_permissions(self):  # method-specific permissions
        if self.request.method == 'GET' and settings.DEBUG:
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request):
        user = request.user if getattr(request, 'user', None) and request.user.is_authenticated else None
        return Response(
            {
                'authenticated': bool(user),
                'user': _user_payload(request, user) if user else None,
            }
        )

    def patch(self, request):  # profile update
        user = request.user
        payload = request.data or {}
        allowed = {k: v for k, v in payload.items() if k in {'username', 'email', 'first_name', 'last_name'}}
        if not allowed:
            return Response({'error': 'no_changes'}, status=status.HTTP_400_BAD_REQUEST)

        username = allowed.get('username')
        email = allowed.get('email')
        if username is not None:
            username = str(username).strip()
            if not username:
                return Response({'error': 'invalid_username'}, status=400)
            allowed['username'] = username
        if email is not None:
            email = str(email).strip().lower()
            if email:
                try:
                    validate_email(email)
                except ValidationError:
                    return Response({'error': 'invalid_email'}, status=400)
            allowed['email'] = email

        for field, value in allowed.items():
            setattr(user, field, value)
        try:
            user.save(update_fields=list(allowed.keys()))
        except IntegrityError:
            return Response({'error': 'username_taken'}, status=400)

        return Response({'authenticated': True, 'user': _user_payload(request, user)})


class ThrottledTokenObtainPairView(TokenObtainPairView):
    """JWT obtain pair view with scoped throttling to deter brute-force attempts."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'
