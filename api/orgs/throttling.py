import re

from rest_framework.throttling import ScopedRateThrottle

_PERIOD = re.compile(r'^(\d*)\s*([smhd])')
_SECONDS = {'s': 1, 'm': 60, 'h': 3600, 'd': 86400}


class OrganizationRateThrottle(ScopedRateThrottle):
    """Scoped throttle that also understands windows like ``5/60m``.

    DRF's stock parser only reads the first letter of the period, so
    ``ORG_RATE_LIMITS`` (attempts per N minutes) would collapse to one minute.
    Scopes are keyed per user, so the window applies per (user, action).
    """

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        num, period = rate.split('/')
        match = _PERIOD.match(period.strip().lower())
        if not match:
            raise ValueError(f'Invalid throttle rate: {rate!r}')
        count = int(match.group(1) or 1)
        return (int(num), count * _SECONDS[match.group(2)])
