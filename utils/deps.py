from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from utils.errors import AuthorizationError
from utils.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)

def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)):

    if credentials is None or not credentials.scheme.lower() == "bearer":
        raise AuthorizationError("Not authenticated", status_code=status.HTTP_401_UNAUTHORIZED)
    token = credentials.credentials
    payload = decode_token(token)
    if not payload:
        raise AuthorizationError("Invalid token", status_code=status.HTTP_401_UNAUTHORIZED)
    return payload

def is_admin(payload) -> bool:
    return bool(payload) and payload.get("role") == "admin"

def role_required(role: str):
    def wrapper(payload=Depends(get_current_user)):
        if payload.get("role") != role:
            raise AuthorizationError()
        return payload
    return wrapper
