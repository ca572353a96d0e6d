from fastapi import Depends, Header
from typing import Optional
from timetrack.entities import Employee
from timetrack.errors import UnauthorizedError
from timetrack.services.access_policy import require_admin
from timetrack.services.token_store import TokenStore

BEARER_PREFIX = "Bearer "

# One store per process; sessions do not survive a restart
_token_store = TokenStore()


def get_token_store() -> TokenStore:
    return _token_store


def get_bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError("Missing or invalid Authorization header")
    return authorization[len(BEARER_PREFIX):].strip()


def get_current_employee(
    token: str = Depends(get_bearer_token),
    store: TokenStore = Depends(get_token_store)
) -> Employee:
    employee = store.resolve(token)
    if employee is None:
        raise UnauthorizedError("Invalid or expired token")
    return employee


def get_current_admin(employee: Employee = Depends(get_current_employee)) -> Employee:
    return require_admin(employee)
