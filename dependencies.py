from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from auth import decode_access_token, InvalidToken
from services.fundraiser import FundraiserStore

bearer = HTTPBearer(auto_error=False)


def get_store(request: Request) -> FundraiserStore:
    """O store vive no app (criado no create_app)"""
    return request.app.state.store


# --- AUTENTICAÇÃO VIA TOKEN DO PROVEDOR ---
def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)):
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials)
    except InvalidToken:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido ou expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )
