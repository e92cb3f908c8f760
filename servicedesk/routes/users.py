"""
User account endpoints (/api/users)
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from servicedesk.dependencies import current_identity, current_user_id, get_services, require_admin
from servicedesk.models.api import (
    ChangePasswordRequest,
    ChangeStatusRequest,
    ForgotPasswordRequest,
    LoginRequest,
    PushTokenRequest,
    RegisterRequest,
    UpdateProfileRequest,
    VerifyResetCodeRequest,
)
from servicedesk.services.container import ServiceContainer
from servicedesk.services.populate import public_user

router = APIRouter(prefix="/users", tags=["users"])


# ============================================================================
# Public
# ============================================================================

@router.post("/register", status_code=201)
def register(payload: RegisterRequest, services: ServiceContainer = Depends(get_services)):
    user, token = services.users.register(payload)
    return {
        "message": "Account created successfully. Please wait for approval.",
        "user": public_user(user),
        "token": token,
    }


@router.post("/login")
def login(payload: LoginRequest, services: ServiceContainer = Depends(get_services)):
    user, token = services.users.login(payload)
    return {
        "message": "Login successful",
        "user": public_user(user),
        "token": token,
        "role": user.role.value,
    }


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, services: ServiceContainer = Depends(get_services)):
    email = services.users.forgot_password(payload)
    minutes = max(1, services.settings.RESET_CODE_TTL_SECONDS // 60)
    unit = "minute" if minutes == 1 else "minutes"
    return {
        "message": (
            f"Verification code sent to {email}. Please check your email "
            f"and enter the 6-digit code within {minutes} {unit}."
        )
    }


@router.post("/verify-reset-code")
def verify_reset_code(payload: VerifyResetCodeRequest, services: ServiceContainer = Depends(get_services)):
    services.users.verify_reset_code(payload)
    return {"message": "Password reset successfully. You can now login with your new password."}


# ============================================================================
# Signed in
# ============================================================================

@router.post("/update-push-token")
def update_push_token(
    payload: PushTokenRequest,
    user_id: UUID = Depends(current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    services.users.update_push_token(user_id, payload)
    return {"message": "Push token updated successfully"}


@router.get("/profile")
def get_profile(user_id: UUID = Depends(current_user_id), services: ServiceContainer = Depends(get_services)):
    user = services.users.get(user_id)
    return {"user": public_user(user), "role": user.role.value}


@router.put("/profile")
def update_profile(
    payload: UpdateProfileRequest,
    user_id: UUID = Depends(current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    user = services.users.update_profile(user_id, payload)
    return {"message": "User updated successfully", "user": public_user(user)}


@router.get("", dependencies=[Depends(current_identity)])
def list_users(services: ServiceContainer = Depends(get_services)):
    return [public_user(u) for u in services.users.list_users()]


@router.put("/reset-password")
def change_password(
    payload: ChangePasswordRequest,
    user_id: UUID = Depends(current_user_id),
    services: ServiceContainer = Depends(get_services),
):
    services.users.change_password(user_id, payload)
    return {"message": "Password reset successfully"}


# ============================================================================
# Admin
# ============================================================================

@router.get("/pending", dependencies=[Depends(require_admin)])
def list_pending_users(services: ServiceContainer = Depends(get_services)):
    return [public_user(u) for u in services.users.list_pending()]


@router.put("/pending/{user_id}", dependencies=[Depends(require_admin)])
def change_user_status(
    user_id: UUID,
    payload: ChangeStatusRequest,
    services: ServiceContainer = Depends(get_services),
):
    services.users.change_status(user_id, payload.status)
    return {"message": "User status changed successfully"}


@router.get("/approved", dependencies=[Depends(require_admin)])
def list_approved_users(services: ServiceContainer = Depends(get_services)):
    return [public_user(u) for u in services.users.list_approved()]


@router.delete("/{user_id}", dependencies=[Depends(require_admin)])
def delete_user(user_id: UUID, services: ServiceContainer = Depends(get_services)):
    services.users.delete(user_id)
    return {"message": "User deleted successfully"}
