"""Identity of the caller, resolved before any conversation read or write."""
from dependency_injector.wiring import Provide, inject
from fastapi import Depends, HTTPException
from starlette.requests import Request

from api.shared.exceptions import AuthError, ContinuumException
from api.shared.security import CurrentUser, TokenVerifier
from di.container import ApplicationContainer


@inject
async def get_current_user(
    request: Request,
    verifier: TokenVerifier = Depends(
        Provide[ApplicationContainer.infrastructure.token_verifier]
    ),
) -> CurrentUser:
    """FastAPI dependency returning the signed-in user or failing with 401."""
    try:
        token = verifier.extract_token(request)
        if not token:
            raise AuthError()
        return verifier.verify(token)
    except ContinuumException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
