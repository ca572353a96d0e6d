from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from timetrack.database import get_db
from timetrack.entities import Employee
from timetrack.routers.dependencies import get_bearer_token, get_current_employee, get_token_store
from timetrack.schemas import ChangePasswordRequest, LoginRequest, LoginResponse, MessageDto, UserDto
from timetrack.services.auth_service import AuthService
from timetrack.services.token_store import TokenStore
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    store: TokenStore = Depends(get_token_store)
):
    token, employee = AuthService.login(db, store, request.user_name, request.password)
    user = UserDto.from_employee(employee)
    return LoginResponse(token=token, **user.model_dump())


@router.post("/logout", response_model=MessageDto)
def logout(token: str = Depends(get_bearer_token), store: TokenStore = Depends(get_token_store)):
    AuthService.logout(store, token)
    return MessageDto(message="Logged out successfully")


@router.get("/currentuser", response_model=UserDto)
def current_user(employee: Employee = Depends(get_current_employee)):
    return UserDto.from_employee(employee)


@router.put("/currentuser/password", response_model=MessageDto)
def change_password(
    body: ChangePasswordRequest,
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    AuthService.change_password(db, employee, body.current_password, body.new_password, body.confirm_password)
    return MessageDto(message="Password changed")
