from fastapi import Request, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Optional

from delivery_insights.utils.logger import get_logger
from delivery_insights.config import Settings, get_settings

# Initialize logger
logger = get_logger(__name__)

class CallerIdentity(BaseModel):
    """Caller identity carried by the bearer token."""
    user_id: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None
    restaurant_id: Optional[str] = None

class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware for JWT authentication.

    This middleware only attaches the caller identity to the request state
    when a valid token is provided. Enforcement is done by the
    ``get_current_caller`` dependency in the route handlers.
    """

    def __init__(self, app, settings: Optional[Settings] = None):
        super().__init__(app)
        self.settings = settings or get_settings()
        self.security = HTTPBearer(auto_error=False)

    async def dispatch(self, request: Request, call_next):
        request.state.caller = None

        credentials: Optional[HTTPAuthorizationCredentials] = await self.security(request)

        if credentials:
            try:
                payload = jwt.decode(
                    credentials.credentials,
                    self.settings.jwt_secret_key,
                    algorithms=[self.settings.jwt_algorithm]
                )

                user_id = payload.get("user_id")
                restaurant_id = payload.get("restaurant_id") or payload.get("restaurantId")
                request.state.caller = CallerIdentity(
                    user_id=str(user_id) if user_id is not None else None,
                    username=payload.get("sub"),
                    role=payload.get("role") or payload.get("position"),
                    restaurant_id=str(restaurant_id) if restaurant_id is not None else None
                )

                logger.debug(f"Authenticated caller: {payload.get('sub')}")

            except JWTError as e:
                logger.warning(f"Invalid token received: {str(e)}")

        return await call_next(request)

async def get_current_caller(request: Request) -> CallerIdentity:
    """Dependency returning the authenticated caller or raising 401."""
    caller = getattr(request.state, "caller", None)

    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return caller
