"""
Google credentials forwarded by the dashboard frontend.

The frontend signs users in with Google and may forward the OAuth access
token so Search Console is queried on the user's behalf. Without a token the
server falls back to its service account (see integrations.gsc).
"""
import logging

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = 'HTTP_X_GOOGLE_ACCESS_TOKEN'


def extract_google_access_token(request):
    """Return the forwarded Google access token, or None."""
    token = request.META.get(ACCESS_TOKEN_HEADER, '').strip()
    if token.startswith('Bearer '):
        token = token.split('Bearer ')[1].strip()
    return token or None
