from dataclasses import dataclass

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from matchday.core.security import decode_token

bearer = HTTPBearer()

@dataclass(frozen=True)
class Caller:
    """Identity taken from an upstream-issued access token."""
    id: str

def _caller_from_access_token(creds: HTTPAuthorizationCredentials) -> Caller:
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token has no subject")
    return Caller(id=str(user_id))

def get_current_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> Caller:
    return _caller_from_access_token(creds)
