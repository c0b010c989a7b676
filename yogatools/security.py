import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .config import AUTH_REALM, site_password

logger = logging.getLogger(__name__)

# auto_error=False so the guard can stay open when no password is configured
basic_auth = HTTPBasic(auto_error=False, realm=AUTH_REALM)


def require_password(credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth)) -> None:
    """Shared-password gate: any username, the password must match SITE_PASSWORD."""
    expected = site_password()
    if expected is None:
        return
    supplied = credentials.password if credentials else ""
    if credentials and secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        return
    logger.warning("Rejected request with missing or wrong password")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": f'Basic realm="{AUTH_REALM}"'},
    )
