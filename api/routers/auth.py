"""
Auth API Endpoints.

Exchange operator credentials for a JWT bearer token.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.models import ErrorResponse, LoginData, LoginRequest, LoginResponse
from services.auth_service import authenticate, create_access_token

router = APIRouter()


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Login",
    description="Validate credentials and issue an access token.",
)
def login(request: LoginRequest):
    """
    Log in and receive a bearer token.

    **Example request:**
    ```json
    {"username": "admin@developerstore.dev", "password": "Admin@123"}
    ```

    Use the token as `Authorization: Bearer <token>` on the sales endpoints.
    """
    user = authenticate(request.username, request.password)
    if user is None:
        return JSONResponse(
            status_code=401,
            content=ErrorResponse(message="Invalid credentials").model_dump(exclude_none=True),
        )

    return LoginResponse(
        success=True,
        message="Authenticated",
        data=LoginData(token=create_access_token(user)),
    )
