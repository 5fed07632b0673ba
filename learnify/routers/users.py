# learnify/routers/users.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from sqlalchemy.orm import Session

from learnify.core.config import Settings
from learnify.core.database import get_db
from learnify.core.dependencies import (
    get_current_user,
    get_jwt_manager,
    get_mail_sender,
    get_media_store,
    get_settings,
    get_token_blacklist,
)
from learnify.core.security import JWTManager, TokenBlacklist
from learnify.models.user import User
from learnify.schemas.common import ApiResponse, MessageResponse
from learnify.schemas.user import (
    AuthData,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ProfileResponse,
    ProfileUpdate,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
    UserResponse,
)
from learnify.services.user import UserService
from learnify.utils.mailer import MailSender
from learnify.utils.media_store import MediaStore

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={401: {"description": "Not authenticated"}},
)


def set_auth_cookie(response: Response, token: str, settings: Settings, max_age: int):
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="none" if settings.auth_cookie_secure else "lax",
    )


def get_user_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> UserService:
    return UserService(db, settings, jwt_manager)


def _auth_response(response, user, token, message, settings, jwt_manager):
    set_auth_cookie(response, token, settings, jwt_manager.max_age)
    return {"success": True, "message": message, "data": {"user": user, "access_token": token}}


# ==================== Authentication ====================


@router.post("/signup", response_model=ApiResponse[AuthData], status_code=201)
def signup(
    data: SignupRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
):
    """Create an account and sign it in."""
    user, token = service.signup(data)
    return _auth_response(response, user, token, "Account created successfully", settings, jwt_manager)


@router.post("/signin", response_model=ApiResponse[AuthData])
def signin(
    data: SigninRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
):
    user, token = service.signin(data)
    return _auth_response(
        response, user, token, f"Welcome back {user.name}", settings, jwt_manager
    )


@router.post("/signout", response_model=MessageResponse)
def signout(
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
    blacklist: TokenBlacklist = Depends(get_token_blacklist),
):
    """Revoke the current token and clear the auth cookie."""
    service.signout(request.state.token, request.state.token_payload, blacklist)
    response.delete_cookie(settings.auth_cookie_name)
    return {"success": True, "message": "Signed out successfully"}


# ==================== Profile ====================


@router.get("/profile", response_model=ApiResponse[ProfileResponse])
def get_profile(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": current_user}


@router.patch("/profile", response_model=ApiResponse[UserResponse])
async def update_profile(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    media_store: MediaStore = Depends(get_media_store),
):
    """Update name, email, bio and avatar (multipart form)."""
    fields = {k: v for k, v in {"name": name, "email": email, "bio": bio}.items() if v is not None}
    data = ProfileUpdate(**fields)
    user = await service.update_profile(current_user, data, avatar, media_store)
    return {"success": True, "message": "Profile updated successfully", "data": user}


@router.patch("/password", response_model=ApiResponse[AuthData])
def change_password(
    data: ChangePasswordRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
):
    user, token = service.change_password(current_user, data)
    return _auth_response(
        response, user, token, "Password updated successfully", settings, jwt_manager
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    service: UserService = Depends(get_user_service),
    mail_sender: MailSender = Depends(get_mail_sender),
):
    await service.forgot_password(data.email, mail_sender)
    return {
        "success": True,
        "message": "If an account exists for that email, a reset code has been sent",
    }


@router.post("/reset-password", response_model=ApiResponse[AuthData])
def reset_password(
    data: ResetPasswordRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
):
    user, token = service.reset_password(data)
    return _auth_response(
        response, user, token, "Password reset successfully", settings, jwt_manager
    )


@router.delete("/account", response_model=MessageResponse)
def delete_account(
    response: Response,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
    media_store: MediaStore = Depends(get_media_store),
):
    service.delete_account(current_user, media_store)
    response.delete_cookie(settings.auth_cookie_name)
    return {"success": True, "message": "Account deleted successfully"}
