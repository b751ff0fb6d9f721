from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
import logging

from ..application.policies import Caller, Role
from ..application.services.accounts_service import AccountsService
from ..schemas.auth.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterDoctorRequest,
    RegisterPatientRequest,
    RegisterResponse,
    UpdateProfileRequest,
    UserResponse,
)
from ..schemas.common.common import MessageResponse
from .deps import get_accounts_service, get_current_caller, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
def login(
    request: LoginRequest,
    accounts: AccountsService = Depends(get_accounts_service),
):
    token, user = accounts.login(request.email, request.password)
    return LoginResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/register/patient", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register_patient(
    request: RegisterPatientRequest,
    caller: Caller = Depends(require_role(Role.ADMIN)),
    accounts: AccountsService = Depends(get_accounts_service),
):
    user, temp_password = accounts.register(caller, Role.PATIENT, request.name, request.email, phone=request.phone)
    return RegisterResponse(
        message="Patient created successfully",
        user=UserResponse.model_validate(user),
        temp_password=temp_password,
    )


@router.post("/register/doctor", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register_doctor(
    request: RegisterDoctorRequest,
    caller: Caller = Depends(require_role(Role.ADMIN)),
    accounts: AccountsService = Depends(get_accounts_service),
):
    user, temp_password = accounts.register(
        caller,
        Role.DOCTOR,
        request.name,
        request.email,
        phone=request.phone,
        department=request.department,
        specialty=request.specialty,
    )
    return RegisterResponse(
        message="Doctor created successfully",
        user=UserResponse.model_validate(user),
        temp_password=temp_password,
    )


@router.get("/me", response_model=UserResponse)
def get_me(
    caller: Caller = Depends(get_current_caller),
    accounts: AccountsService = Depends(get_accounts_service),
):
    return UserResponse.model_validate(accounts.me(caller))


@router.put("/me", response_model=UserResponse)
def update_me(
    request: UpdateProfileRequest,
    caller: Caller = Depends(get_current_caller),
    accounts: AccountsService = Depends(get_accounts_service),
):
    return UserResponse.model_validate(accounts.update_profile(caller, name=request.name, phone=request.phone))


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    request: ChangePasswordRequest,
    caller: Caller = Depends(get_current_caller),
    accounts: AccountsService = Depends(get_accounts_service),
):
    accounts.change_password(caller, request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")


@router.get("/users", response_model=List[UserResponse])
def list_users(
    role: Optional[Role] = Query(None),
    caller: Caller = Depends(require_role(Role.ADMIN)),
    accounts: AccountsService = Depends(get_accounts_service),
):
    return [UserResponse.model_validate(u) for u in accounts.list_users(caller, role=role)]


@router.patch("/users/{user_id}/toggle", response_model=UserResponse)
def toggle_user(
    user_id: str,
    caller: Caller = Depends(require_role(Role.ADMIN)),
    accounts: AccountsService = Depends(get_accounts_service),
):
    return UserResponse.model_validate(accounts.toggle_user(caller, user_id))


@router.get("/doctors", response_model=List[UserResponse])
def list_doctors(
    caller: Caller = Depends(get_current_caller),
    accounts: AccountsService = Depends(get_accounts_service),
):
    return [UserResponse.model_validate(u) for u in accounts.list_doctors(caller)]
