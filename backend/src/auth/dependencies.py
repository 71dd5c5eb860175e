"""FastAPI dependencies for API key authentication.

Usage:
    router = APIRouter(dependencies=[Depends(require_api_key)])

    @router.get("/protected")
    def protected_endpoint(api_key: ApiKey = Depends(require_api_key)):
        return {"client": api_key.name}
"""

from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from database import get_db
from models.api_key import ApiKey
from .api_keys import ApiKeyAuthenticator, extract_token


def get_authenticator(db: Session = Depends(get_db)) -> ApiKeyAuthenticator:
    return ApiKeyAuthenticator(db)


def require_api_key(
    authenticator: Annotated[ApiKeyAuthenticator, Depends(get_authenticator)],
    x_api_key: Annotated[Optional[str], Header(alias="X-API-Key")] = None,
    authorization: Annotated[Optional[str], Header()] = None,
) -> ApiKey:
    """Authenticate the calling client.

    Raises:
        MissingCredential: 401 "API key is required"
        InvalidOrExpired: 401 "Invalid or expired API key"
    """
    return authenticator.authenticate(extract_token(x_api_key, authorization))


# Type alias for dependency injection
AuthenticatedClient = Annotated[ApiKey, Depends(require_api_key)]
