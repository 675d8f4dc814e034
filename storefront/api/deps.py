from fastapi import Request

from storefront.application.authorization import ROLE_CUSTOMER, Principal
from storefront.auth_local import decode_access_token
from storefront.core import set_request_context
from storefront.domain.errors import AuthenticationError

BEARER_PREFIX = "Bearer "

def get_principal(request: Request) -> Principal:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise AuthenticationError("No token provided. Authorization header must be: Bearer <token>")
    token_data = decode_access_token(auth_header[len(BEARER_PREFIX):])
    if not token_data:
        raise AuthenticationError("Invalid or expired token")
    try:
        user_id = int(token_data["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid or expired token")
    set_request_context(user_id=str(user_id))
    return Principal(user_id=user_id, role=str(token_data.get("role") or ROLE_CUSTOMER).upper())
