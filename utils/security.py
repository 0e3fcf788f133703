from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt import ExpiredSignatureError, PyJWTError
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import Settings, get_error_key

bearer_scheme = HTTPBearer(auto_error=False)

# ✅ Fonction pour générer un token JWT
def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=settings.access_token_expire_hours))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

def decode_access_token(token: str, settings: Settings) -> dict:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError:
        raise ValueError("Token expired")
    except PyJWTError as e:
        raise ValueError(f"Invalid token: {str(e)}")
    if payload.get("sub") is None:
        raise ValueError("Invalid token - missing sub claim")
    return payload

def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    if credentials is None:
        raise HTTPException(status_code=401, detail=get_error_key("auth", "token", "missing"))
    try:
        payload = decode_access_token(credentials.credentials, request.app.state.settings)
    except ValueError:
        raise HTTPException(status_code=401, detail=get_error_key("auth", "token", "invalid"))
    return {"email": payload.get("sub"), "role": payload.get("role", "")}

# Vérifier que l'utilisateur est administrateur
def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    if str(current_user.get("role") or "").lower() != "admin":
        raise HTTPException(status_code=403, detail=get_error_key("auth", "admin", "no_permission"))
    return current_user
