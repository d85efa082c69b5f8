from django.utils.functional import SimpleLazyObject

from orgs.context import OrganizationContext


class OrganizationContextMiddleware:
    """
    Attaches the organization context for the acting user to each request.
    - request.org_context: resolver bound to request.user and request.session
    Lazy so that token authentication performed later by DRF (which
    assigns request.user on the underlying request) is honored, and requests
    that never touch organization data cost no queries.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.org_context = SimpleLazyObject(lambda: OrganizationContext.from_request(request))
        return self.get_response(request)
