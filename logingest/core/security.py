"""
Log Ingest - Security Layer

Shared-secret access guard for the /logs endpoints.

The credential is taken from the `token` query parameter or, failing that,
from the second segment of the Authorization header (`Bearer <secret>`).
"""

import secrets

from fastapi import Header, Query, Request
from loguru import logger

from .errors import Forbidden, Unauthenticated


def extract_token(query_token: str | None, authorization: str | None) -> str | None:
    """
    Resolve the presented credential.

    The query parameter takes precedence; an empty value falls through to the
    header. Returns None when neither source carries a credential.
    """
    if query_token:
        return query_token

    parts = (authorization or "").split(" ")
    if len(parts) > 1 and parts[1]:
        return parts[1]
    return None


def check_token(presented: str | None, expected: str) -> None:
    """
    Compare a presented credential against the configured secret.

    Raises:
        Unauthenticated: No credential presented
        Forbidden: Credential presented but does not match
    """
    if not presented:
        raise Unauthenticated()

    if not secrets.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Invalid API token attempted")
        raise Forbidden()


async def require_api_token(
    request: Request,
    token: str | None = Query(default=None),
    authorization: str | None = Header(default=None),
) -> None:
    """
    FastAPI dependency guarding every method on /logs.

    Usage:
        router = APIRouter(dependencies=[Depends(require_api_token)])

    Raises:
        Forbidden: `token` repeated in the query string, whatever the values
    """
    if len(request.query_params.getlist("token")) > 1:
        logger.warning("Repeated token query parameter rejected")
        raise Forbidden()

    check_token(extract_token(token, authorization), request.app.state.settings.API_TOKEN)
    logger.debug("Authenticated via shared token")
