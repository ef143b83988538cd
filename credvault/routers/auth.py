from fastapi import APIRouter, Depends, status

from .. import schemas
from ..core.config import settings
from ..core.dependencies import get_lifecycle_manager
from ..mailer import PURPOSE_RESET
from ..services.lifecycle import CredentialLifecycleManager

router = APIRouter()


@router.post("/signup", response_model=schemas.AuthResponse, response_model_exclude_none=True,
             status_code=status.HTTP_201_CREATED)
async def signup(
        user_in: schemas.UserCreate,
        manager: CredentialLifecycleManager = Depends(get_lifecycle_manager)
):
    user, token = await manager.sign_up(user_in.full_name, user_in.email, user_in.password)

    user_out = schemas.SignupUser.model_validate(user)
    if settings.RETURN_OTP_IN_SIGNUP:
        user_out.otp = user.otp_code

    return {
        "status": status.HTTP_201_CREATED,
        "success": True,
        "token": token,
        "user": user_out,
    }


@router.post("/verify", response_model=schemas.AuthResponse, response_model_exclude_none=True)
async def verify_otp(
        data: schemas.VerifyOTP,
        manager: CredentialLifecycleManager = Depends(get_lifecycle_manager)
):
    user = await manager.verify_otp(data.otp, email=data.email)
    return {
        "status": status.HTTP_200_OK,
        "success": True,
        "message": "Otp verified successfully",
        "user": schemas.SignupUser.model_validate(user),
    }


@router.post("/login", response_model=schemas.AuthResponse, response_model_exclude_none=True)
async def login(
        data: schemas.UserLogin,
        manager: CredentialLifecycleManager = Depends(get_lifecycle_manager)
):
    user, token = await manager.login(data.email, data.password)
    return {
        "status": status.HTTP_200_OK,
        "success": True,
        "token": token,
        "user": schemas.SignupUser.model_validate(user),
    }


@router.post("/forgotpassword", response_model=schemas.AuthResponse, response_model_exclude_none=True)
async def forgot_password(
        data: schemas.ForgotPassword,
        manager: CredentialLifecycleManager = Depends(get_lifecycle_manager)
):
    user = await manager.forgot_password(data.email)
    await manager.send_otp(user, user.otp_code, PURPOSE_RESET)
    return {
        "status": status.HTTP_200_OK,
        "success": True,
        "message": "Password reset email sent successfully. Please check your email inbox.",
    }


@router.post("/resetpassword", response_model=schemas.AuthResponse, response_model_exclude_none=True)
async def reset_password(
        data: schemas.ResetPassword,
        manager: CredentialLifecycleManager = Depends(get_lifecycle_manager)
):
    await manager.reset_password(
        data.otp, data.new_password, data.confirm_password, email=data.email
    )
    return {
        "status": status.HTTP_200_OK,
        "success": True,
        "message": "Password reset successful",
    }
