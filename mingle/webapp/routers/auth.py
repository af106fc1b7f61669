"""
Authentication endpoints.
"""

from fastapi import APIRouter, Depends, Request

from mingle.errors import InvalidArgument, Unauthenticated
from mingle.webapp.auth import MIN_PASSWORD_LENGTH
from ..dependencies import get_current_user
from ..schemas import LoginRequest, RegisterRequest
from mingle.utils.logger import get_logger

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = get_logger(__name__)


def validate_new_password(password: str, confirm_password: str) -> None:
    if password != confirm_password:
        raise InvalidArgument("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidArgument(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


@router.post("/register", status_code=201)
async def register(request: Request, body: RegisterRequest):
    """Create an account and return it with a bearer token."""
    if not body.username.strip() or not body.email.strip() or not body.password:
        raise InvalidArgument("Username, email, and password are required")
    validate_new_password(body.password, body.confirm_password)

    credentials = request.app.state.credentials
    user = request.app.state.identity.create_user(
        username=body.username,
        email=body.email,
        password_hash=credentials.hash_password(body.password),
        bio=body.bio,
        avatar_url=body.avatar_url,
    )
    return {
        "message": "User registered successfully",
        "user": user.to_dict(),
        "token": credentials.issue_token(user.id),
    }


@router.post("/login")
async def login(request: Request, body: LoginRequest):
    """Exchange email and password for a bearer token."""
    if not body.email.strip() or not body.password:
        raise InvalidArgument("Email and password are required")

    credentials = request.app.state.credentials
    user = request.app.state.identity.find_by_email(body.email)
    if user is None or not credentials.verify_password(body.password, user.password_hash):
        logger.info("Failed login attempt")
        raise Unauthenticated("Invalid email or password")

    logger.info(f"User {user.id} logged in")
    return {
        "message": "Login successful",
        "user": user.to_dict(),
        "token": credentials.issue_token(user.id),
    }


@router.get("/me")
async def me(request: Request, user_id: str = Depends(get_current_user)):
    user = request.app.state.identity.get_user(user_id)
    return {"user": user.to_dict()}


@router.post("/logout")
async def logout(user_id: str = Depends(get_current_user)):
    # Tokens are stateless; the client drops its copy
    logger.info(f"User {user_id} logged out")
    return {"message": "Logout successful. Please delete the token on the client side."}
