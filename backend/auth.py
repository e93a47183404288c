"""
Identity for the Notebook Grader.

Callers sign in with Supabase; every /api/ request outside PUBLIC_PATHS must
carry the Supabase access token as a Bearer header. The verified identity is
stored on flask.g for the route handlers.
"""
import logging
from typing import NamedTuple, Optional

import jwt
from flask import current_app, request, jsonify, g

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset({
    '/api/health',
    '/api/rubric',         # Rubric is shown before sign-in
})

TOKEN_AUDIENCE = 'authenticated'
TOKEN_ALGORITHMS = ['HS256']


class Identity(NamedTuple):
    user_id: str
    email: str


def decode_identity(token: str, secret: str) -> Optional[Identity]:
    """Verify a Supabase access token. None for a bad, expired or subject-less token."""
    try:
        claims = jwt.decode(token, secret, algorithms=TOKEN_ALGORITHMS, audience=TOKEN_AUDIENCE)
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected token: %s", e)
        return None
    if not claims.get('sub'):
        return None
    return Identity(user_id=claims['sub'], email=claims.get('email') or '')


def bearer_token(header: str) -> Optional[str]:
    scheme, _, token = (header or '').partition(' ')
    if scheme != 'Bearer' or not token.strip():
        return None
    return token.strip()


def current_identity():
    """(user_id, email) for the authenticated caller of this request."""
    identity = g.get('identity')
    if identity is None:
        return None, ''
    return identity.user_id, identity.email


def init_auth(app, secret):
    """
    Register the before_request identity hook. `secret` is the Supabase
    JWT secret (Config.jwt_secret).
    """
    app.config['JWT_SECRET'] = secret
    if not secret:
        logger.warning("SUPABASE_JWT_SECRET not set; authenticated routes will refuse every request")

    @app.before_request
    def require_identity():
        if not request.path.startswith('/api/') or request.path in PUBLIC_PATHS:
            return None

        token = bearer_token(request.headers.get('Authorization'))
        if token is None:
            return jsonify({'error': 'Authentication required'}), 401

        secret = current_app.config.get('JWT_SECRET')
        if not secret:
            return jsonify({'error': 'Authentication is not configured'}), 503

        identity = decode_identity(token, secret)
        if identity is None:
            return jsonify({'error': 'Invalid or expired token'}), 401
        g.identity = identity
