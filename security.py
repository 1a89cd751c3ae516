import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from starlette import status

from config import settings
from database import session
from domain.user import user_crud, user_schema

logger = logging.getLogger(__name__)

# IdP 신원 토큰 발급/검증 (서명 + 만료)

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/session")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/session", auto_error=False)

def create_access_token(identity: user_schema.TokenData, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = {
        "sub": identity.id,
        "email": identity.email,
        "name": identity.name,
        "picture": identity.picture,
    }
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def decode_token(token: str):
    """토큰을 디코딩하여 페이로드를 반환 (서명/만료 실패 시 None)"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError as e:
        logger.warning("Rejected bearer token: %s", e)
        return None

def identity_from_token(token: Optional[str]) -> Optional[user_schema.TokenData]:
    if not token:
        return None
    payload = decode_token(token)
    if payload is None:
        return None
    external_id = payload.get("sub")
    if not external_id:
        return None
    return user_schema.TokenData(
        id=str(external_id),
        email=payload.get("email"),
        name=payload.get("name"),
        picture=payload.get("picture"),
    )

def get_current_identity(token: str = Depends(oauth2_scheme)) -> user_schema.TokenData:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    identity = identity_from_token(token)
    if identity is None:
        raise credentials_exception
    return identity

def get_optional_identity(token: Optional[str] = Depends(optional_oauth2_scheme)) -> Optional[user_schema.TokenData]:
    return identity_from_token(token)

def get_current_user(
    identity: user_schema.TokenData = Depends(get_current_identity),
    db: Session = Depends(session.get_db)
):
    user = user_crud.get_user_by_google_id(db, google_id=identity.id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
