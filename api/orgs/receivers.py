import logging

from django.conf import settings
from django.dispatch import receiver

from .signals import invitation_sent
from .tasks import send_invitation_email

logger = logging.getLogger(__name__)


@receiver(invitation_sent, dispatch_uid='orgs.deliver_invitation_email')
def deliver_invitation_email(sender, invitation, **kwargs):
    """Hand the invitation to the mailer; delivery never fails the caller."""
    # Async path when enabled and broker configured
    if getattr(settings, 'ORG_INVITES_ASYNC', False) and getattr(settings, 'CELERY_BROKER_URL', ''):
        try:
            send_invitation_email.delay(invitation.pk, invitation.token)  # type: ignore[attr-defined]
            return
        except Exception:
            # Fall through to sync if enqueue fails
            logger.warning('org.invite.enqueue_failed invite_id=%s', invitation.pk, exc_info=True)
    try:
        send_invitation_email(invitation.pk, invitation.token)
    except Exception:
        logger.exception('org.invite.email_failed invite_id=%s', invitation.pk)
