from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.security import HTTPBasic

from pfs import config
from pfs.config import ServerConfig

basic_scheme = HTTPBasic(realm=config.AUTH_REALM, auto_error=False)


def is_authorized(server_config: ServerConfig, username: Optional[str]) -> bool:
    """Check a username against the secret token.

    Only the username is compared; the password is never checked.
    """
    if not server_config.auth_enabled:
        return True
    return username is not None and username == server_config.token


async def require_token(request: Request) -> None:
    """Route dependency that rejects requests without the secret username."""
    server_config: ServerConfig = request.app.state.config
    if not server_config.auth_enabled:
        return

    # Raises a 401 challenge itself when the Basic header is malformed
    credentials = await basic_scheme(request)
    username = credentials.username if credentials else None
    if not is_authorized(server_config, username):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="401 Unauthorized",
            headers={"WWW-Authenticate": f'Basic realm="{config.AUTH_REALM}"'},
        )
