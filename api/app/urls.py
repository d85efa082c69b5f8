from django.http import HttpResponse
from django.urls import path, include
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.routers import DefaultRouter
from app.errors import error_response
from accounts.views import MeView, ThrottledTokenObtainPairView
from orgs.views import OrganizationViewSet, OrgInviteViewSet


def healthz(_request):
    return HttpResponse('ok')


@api_view(['GET'])
@permission_classes([AllowAny])
def api_health(_request):
    """Lightweight liveness probe (no DB)."""
    return Response({'status': 'ok'})


@api_view(['GET'])
@permission_classes([AllowAny])
def api_ready(_request):
    """Readiness probe: checks DB and cache connectivity.

    Returns shape:
    {"status":"ok|error","db":bool,"cache":bool,"details":{...}}
    """
    db_ok = False
    cache_ok = False
    details = {}
    try:
        from django.db import connections

        with connections['default'].cursor() as cur:  # type: ignore[index]
            cur.execute('SELECT 1')
            cur.fetchone()
        db_ok = True
    except Exception as exc:  # pragma: no cover - probe reports, never raises
        details['db_error'] = str(exc)[:200]
    try:
        from django.core.cache import cache

        cache.set('ready_probe', '1', 5)
        cache_ok = cache.get('ready_probe') == '1'
    except Exception as exc:  # pragma: no cover
        details['cache_error'] = str(exc)[:200]
    status = 'ok' if db_ok else 'error'
    payload = {'status': status, 'db': db_ok, 'cache': cache_ok, 'details': details}
    if status == 'error':
        return error_response('ready_check_failed', 'One or more readiness checks failed', status=503, meta=payload)
    return Response(payload)


router = DefaultRouter()
# Registered before 'orgs' so /api/orgs/invites/... is not read as an organization id
router.register(r'orgs/invites', OrgInviteViewSet, basename='org-invite')
router.register(r'orgs', OrganizationViewSet, basename='org')

urlpatterns = [
    path('healthz', healthz),
    path('api/health', api_health),
    path('api/ready', api_ready),
    path('api/me', MeView.as_view()),
    path('api/token', ThrottledTokenObtainPairView.as_view()),
    path('api/token/refresh', TokenRefreshView.as_view()),
    path('api/', include(router.urls)),
]
