"""Authentication and account routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer
from fastapi.security.http import HTTPAuthorizationCredentials

from captains_log.exceptions import (
    DuplicateKeyError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    ValidationError,
)
from captains_log.models.user import User
from captains_log.repositories import Repository, get_repository
from captains_log.schemas.auth import (
    LoginRequest,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from captains_log.services.auth import AuthService, AuthSession, create_token_response

router = APIRouter(prefix="/api/auth", tags=["authentication"])
security = HTTPBearer(auto_error=False)

LOGIN_FAILED = "Incorrect email or password"


def get_auth_service(repository: Annotated[Repository, Depends(get_repository)]) -> AuthService:
    return AuthService(repository)


async def get_auth_session(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthSession:
    """
    Dependency building the caller's session from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session = AuthSession()
    try:
        await auth.restore_session(session, credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    request.state.user_id = session.user_id
    return session


async def get_current_user(
    session: Annotated[AuthSession, Depends(get_auth_session)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """
    Dependency to get the current authenticated user.

    Raises:
        HTTPException: 401 if the session expired or the user no longer exists
    """
    user = await auth.current_user(session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> User | None:
    """The caller's account when a valid bearer token is sent, otherwise None."""
    if credentials is None:
        return None
    session = AuthSession()
    try:
        await auth.restore_session(session, credentials.credentials)
    except InvalidTokenError:
        return None
    return await auth.current_user(session)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """
    Create an account and sign it in.

    Raises:
        HTTPException: 400 for a malformed email or short password
        HTTPException: 409 if the email is already registered
    """
    session = AuthSession()
    try:
        await auth.register(session, payload.email, payload.password, payload.name)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Email already registered"
        )

    user = await auth.current_user(session)
    return create_token_response(session, user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """
    Authenticate a user and return a session token.

    Raises:
        HTTPException: 401 if credentials are invalid
    """
    session = AuthSession()
    try:
        await auth.login(session, credentials.email, credentials.password)
    except (NotFoundError, InvalidCredentialsError):
        # Unknown email and wrong password look the same to the caller
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=LOGIN_FAILED)

    user = await auth.current_user(session)
    return create_token_response(session, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    session: Annotated[AuthSession, Depends(get_auth_session)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Sessions are stateless tokens; the client discards its copy."""
    auth.logout(session)
    return MessageResponse(detail="Logged out")


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: Annotated[User, Depends(get_current_user)]):
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """
    Update name, email, password or recording preferences.

    Raises:
        HTTPException: 400 for an invalid email or short password
        HTTPException: 409 if the new email belongs to another account
    """
    updates = payload.model_dump(exclude_none=True)
    try:
        user = await auth.update_profile(current_user.id, updates)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    except DuplicateKeyError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    session: Annotated[AuthSession, Depends(get_auth_session)],
    current_user: Annotated[User, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Delete the account along with every recording and transcription."""
    try:
        await auth.delete_account(current_user.id, session)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


@router.post("/password-reset", response_model=MessageResponse)
async def request_password_reset(
    payload: PasswordResetRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Always answers the same way so account existence is not revealed."""
    await auth.request_password_reset(payload.email)
    return MessageResponse(
        detail="If an account exists for that email, a password reset link has been sent"
    )


@router.post("/password-reset/confirm", response_model=MessageResponse)
async def confirm_password_reset(
    payload: PasswordResetConfirm,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """
    Set a new password using a reset token.

    Raises:
        HTTPException: 400 for a short password or an invalid/expired token
    """
    try:
        await auth.reset_password(payload.token, payload.new_password)
    except (ValidationError, InvalidTokenError, TokenExpiredError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    return MessageResponse(detail="Password has been reset")
