"""HTTP adapter over the organization core.

Views parse input, resolve the target organization and call into ``actions``,
``membership`` and ``invitations``. Business rules live there; failures surface
as ``OrganizationError`` and are rendered by ``app.errors.exception_handler``.
"""

from typing import Any, Dict, List

from django.contrib.auth import get_user_model
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from app.common import keys

from . import actions, invitations, membership, policies
from .context import OrganizationContext
from .errors import NotFound, ValidationFailed
from .models import Organization, OrgInvite
from .org_settings import flatten_errors
from .serializers import (
    InviteCreateSerializer,
    InviteResendSerializer,
    MemberAddSerializer,
    MemberUpdateSerializer,
    OrganizationCreateSerializer,
    OrganizationSerializer,
    OrgInviteSerializer,
    OrgUserSerializer,
)
from .tasks import build_accept_url
from .throttling import OrganizationRateThrottle


def _validated(serializer) -> Dict[str, Any]:
    if not serializer.is_valid():
        errors: Dict[str, List[str]] = {}
        flatten_errors(serializer.errors, '', errors)
        raise ValidationFailed(errors)
    return dict(serializer.validated_data)


def _context(request) -> OrganizationContext:
    ctx = getattr(request, 'org_context', None)
    return ctx if ctx is not None else OrganizationContext.from_request(request)


def _user_or_404(user_id):
    try:
        return get_user_model().objects.get(pk=int(user_id))
    except (TypeError, ValueError, get_user_model().DoesNotExist) as exc:
        raise NotFound('User') from exc


class OrganizationViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    throttle_classes = [UserRateThrottle, OrganizationRateThrottle]
    throttle_scopes = {
        'create': 'org_create',
        'partial_update': 'org_update',
        'update_settings': 'org_update',
        'destroy': 'org_delete',
        'switch': 'org_switch',
        'make_default': 'org_switch',
    }

    def get_throttles(self):
        # Read by OrganizationRateThrottle; actions without a scope are not limited by it
        self.throttle_scope = self.throttle_scopes.get(getattr(self, 'action', None))
        return super().get_throttles()

    def get_object(self, pk) -> Organization:
        org = Organization.objects.select_related('owner').filter(pk=pk).first() if str(pk).isdigit() else None
        if org is None:
            raise NotFound('Organization')
        return org

    def _visible(self, request, pk) -> Organization:
        org = self.get_object(pk)
        # Strangers get 404 so organization ids are not enumerable
        if not policies.view(request.user, org):
            raise NotFound('Organization')
        return org

    def list(self, request):
        qs = membership.visible_organizations(request.user).select_related('owner').order_by('name')
        ctx = _context(request)
        return Response(
            {
                'results': OrganizationSerializer(qs, many=True).data,
                'current_organization_id': ctx.current_organization_id(),
                'default_organization_id': ctx.default_organization_id(),
            }
        )

    def create(self, request):
        data = _validated(OrganizationCreateSerializer(data=request.data))
        default = data.get('default')
        if default is None:
            default = actions.can_create_default_organization(request.user)
        org = actions.create_organization(
            request.user,
            default=default,
            name=data.get('name'),
            description=data.get('description'),
        )
        return Response(OrganizationSerializer(org).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        org = self._visible(request, pk)
        data = OrganizationSerializer(org).data
        data['role'] = policies.relationship(request.user, org)
        return Response(data)

    def partial_update(self, request, pk=None):
        org = self._visible(request, pk)
        data = request.data or {}
        fields = {k: data[k] for k in ('name', 'description') if k in data}
        org = actions.update_organization(org, request.user, fields)
        return Response(OrganizationSerializer(org).data)

    def destroy(self, request, pk=None):
        org = self._visible(request, pk)
        result = actions.delete_organization(org, request.user, _context(request))
        return Response(result)

    @action(detail=True, methods=['get'], url_path='can-delete')
    def can_delete(self, request, pk=None):
        org = self._visible(request, pk)
        result = actions.can_delete(org, request.user, _context(request))
        result['requirements'] = actions.deletion_requirements()
        return Response(result)

    @action(detail=True, methods=['put', 'patch'], url_path='settings')
    def update_settings(self, request, pk=None):
        org = self._visible(request, pk)
        patch = request.data if isinstance(request.data, dict) else None
        if patch is None:
            raise ValidationFailed({'settings': ['Expected an object.']})
        org = actions.update_settings(org, request.user, dict(patch), replace=request.method == 'PUT')
        return Response({'settings': org.settings})

    @action(detail=True, methods=['post'], url_path='transfer')
    def transfer(self, request, pk=None):
        """Transfer ownership to another user (owner only)."""
        org = self._visible(request, pk)
        policies.authorize('transfer_ownership', request.user, org)
        user_id = (request.data or {}).get('user_id')
        if user_id in (None, ''):
            raise ValidationFailed({'user_id': ['This field is required.']})
        target = _user_or_404(user_id)
        org = actions.transfer_ownership(org, target)
        return Response({'ok': True, 'owner_id': org.owner_id})

    @action(detail=True, methods=['post'], url_path='switch')
    def switch(self, request, pk=None):
        org = self._visible(request, pk)
        actions.switch_organization(_context(request), org)
        return Response({'ok': True, 'current_organization_id': org.pk})

    @action(detail=True, methods=['post'], url_path='default')
    def make_default(self, request, pk=None):
        org = self._visible(request, pk)
        actions.make_default_organization(_context(request), org)
        return Response({'ok': True, 'default_organization_id': org.pk})

    @action(detail=True, methods=['get', 'post', 'patch', 'delete'], url_path='members')
    def members(self, request, pk=None):
        org = self._visible(request, pk)
        if request.method == 'GET':
            return Response(OrgUserSerializer(membership.list_members(org), many=True).data)

        if request.method == 'POST':
            policies.authorize('add_member', request.user, org)
            data = _validated(MemberAddSerializer(data=request.data))
            if data.get('user_id') is not None:
                user = _user_or_404(data['user_id'])
            else:
                user = membership.find_user_by_email(data['email'])
            m = membership.add_member(org, user, role=data['role'], is_active=data['is_active'])
            return Response(OrgUserSerializer(m).data, status=status.HTTP_201_CREATED)

        if request.method == 'PATCH':
            policies.authorize('change_member_role', request.user, org)
            data = _validated(MemberUpdateSerializer(data=request.data))
            user = _user_or_404(data['user_id'])
            if 'role' in data:
                membership.update_role(org, user, data['role'])
            if 'is_active' in data:
                membership.set_active(org, user, data['is_active'])
            m = membership.get_membership(org, user)
            if m is None:
                raise NotFound('Membership')
            return Response(OrgUserSerializer(m).data)

        # DELETE: remove by user_id
        policies.authorize('remove_member', request.user, org)
        user_id = (request.data or {}).get('user_id')
        if user_id in (None, ''):
            raise ValidationFailed({'user_id': ['This field is required.']})
        membership.remove_member(org, _user_or_404(user_id))
        return Response({'ok': True})

    @action(detail=True, methods=['get', 'post'], url_path='invites')
    def invites(self, request, pk=None):
        org = self._visible(request, pk)
        if request.method == 'GET':
            return Response(OrgInviteSerializer(invitations.pending_invitations(org), many=True).data)
        data = _validated(InviteCreateSerializer(data=request.data))
        inv = invitations.send_invitation(
            org,
            request.user,
            data['email'],
            role=data['role'],
            expiration_days=data.get('expiration_days'),
        )
        payload = OrgInviteSerializer(inv).data
        payload['acceptance_url'] = build_accept_url(inv.token)
        return Response(payload, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path=r'invites/(?P<invite_id>\d+)/resend')
    def resend(self, request, pk=None, invite_id=None):
        org = self._visible(request, pk)
        inv = OrgInvite.objects.select_related('org').filter(pk=invite_id, org=org).first()
        if inv is None:
            raise NotFound('Invitation')
        data = _validated(InviteResendSerializer(data=request.data or {}))
        inv = invitations.resend_invitation(inv, request.user, expiration_days=data.get('expiration_days'))
        payload = OrgInviteSerializer(inv).data
        payload['acceptance_url'] = build_accept_url(inv.token)
        return Response(payload)


class OrgInviteViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def _by_token(self, request) -> OrgInvite:
        token = (request.data or {}).get('token')
        if not token:
            raise ValidationFailed({'token': ['This field is required.']})
        return invitations.find_invitation_by_token(token)

    @action(detail=False, methods=['get'], url_path='mine')
    def mine(self, request):
        pending = list(invitations.pending_invitations_for_email(request.user.email or ''))
        data = OrgInviteSerializer(pending, many=True).data
        for row, inv in zip(data, pending):
            row['organization_name'] = inv.org.name
        return Response(data)

    @action(detail=False, methods=['post'], url_path='accept')
    def accept(self, request):
        org = invitations.accept_invitation(self._by_token(request), request.user)
        return Response({'ok': True, 'org_id': org.pk})

    @action(detail=False, methods=['post'], url_path='decline')
    def decline(self, request):
        inv = invitations.decline_invitation(self._by_token(request), request.user)
        return Response({'ok': True, 'state': inv.state, 'message': keys.t('orgs.invites.declined')})
