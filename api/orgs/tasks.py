import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from app.common import keys

from .models import OrgInvite

logger = logging.getLogger(__name__)


def build_accept_url(token: str) -> str:
    # Accept URL to frontend (default /invite?token=TOKEN)
    base = getattr(settings, 'FRONTEND_INVITE_URL_BASE', '') or '/invite'
    sep = '&' if ('?' in base) else '?'
    return f'{base}{sep}token={token}'


@shared_task
def send_invitation_email(invite_id: int, token: str) -> bool:
    invite = OrgInvite.objects.select_related('org').filter(id=invite_id).first()
    # A resend replaces the token; only the latest one is delivered
    if invite is None or invite.token != token or not invite.is_valid():
        logger.info('org.invite.email_skipped invite_id=%s', invite_id)
        return False
    org = invite.org
    send_mail(
        subject=keys.t('orgs.invite_email.subject', org=org.name),
        message=keys.t(
            'orgs.invite_email.body',
            org=org.name,
            role=invite.role,
            url=build_accept_url(token),
            expires=invite.expires_at.strftime('%Y-%m-%d %H:%M UTC'),
        ),
        from_email=getattr(settings, 'DEFAULT_FROM_EMAIL', None),
        recipient_list=[invite.email],
        fail_silently=False,
    )
    logger.info('org.invite.email_sent invite_id=%s', invite_id)
    return True
