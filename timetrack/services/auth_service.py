from sqlalchemy.orm import Session
from timetrack.entities import Employee
from timetrack.errors import ForbiddenError, UnauthorizedError, ValidationError
from timetrack.services.employee_service import EmployeeService
from timetrack.services.token_store import TokenStore
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthService:
    @staticmethod
    def authenticate(db: Session, user_name: Optional[str], password: Optional[str]) -> Optional[Employee]:
        """Return the employee for valid credentials, otherwise None."""
        if not user_name or password is None:
            return None
        user_name = user_name.strip()
        if not EmployeeService.verify_credentials(db, user_name, password):
            return None
        return EmployeeService.find_by_user_name(db, user_name)

    @staticmethod
    def login(db: Session, store: TokenStore, user_name: Optional[str], password: Optional[str]) -> Tuple[str, Employee]:
        if not user_name or password is None:
            raise ValidationError("userName and password are required")
        employee = AuthService.authenticate(db, user_name, password)
        if employee is None:
            logger.warning(f"Failed login for '{user_name.strip()}'")
            raise UnauthorizedError("Invalid username or password")
        token = store.issue(employee)
        logger.info(f"🔐 {employee.user_name} logged in")
        return token, employee

    @staticmethod
    def logout(store: TokenStore, token: Optional[str]) -> bool:
        revoked = store.revoke(token)
        if revoked:
            logger.info("Session token revoked")
        return revoked

    @staticmethod
    def change_password(
        db: Session,
        employee: Employee,
        current_password: Optional[str],
        new_password: Optional[str],
        confirm_password: Optional[str]
    ) -> None:
        if not current_password or not new_password or not confirm_password:
            raise ValidationError("Fill out all password fields.")
        if new_password != confirm_password:
            raise ValidationError("New password and confirmation do not match.")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Use at least {MIN_PASSWORD_LENGTH} characters.")
        if not EmployeeService.verify_credentials(db, employee.user_name, current_password):
            raise ForbiddenError("Your current password is wrong.")
        EmployeeService.set_password(db, employee.user_name, new_password)
