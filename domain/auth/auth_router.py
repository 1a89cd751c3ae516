import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette import status

from database import session
from domain.user import user_crud, user_schema
from security import create_access_token, get_current_identity, get_current_user, get_optional_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

def _auth_status(identity: user_schema.TokenData, has_onboarding: bool) -> user_schema.AuthStatus:
    return user_schema.AuthStatus(
        authenticated=True,
        has_onboarding=has_onboarding,
        user=user_schema.AuthUser(
            id=identity.id,
            email=identity.email,
            name=identity.name,
            picture=identity.picture,
        ),
    )

@router.post("/session", response_model=user_schema.AuthStatus)
def start_session(
    identity: user_schema.TokenData = Depends(get_current_identity),
    db: Session = Depends(session.get_db)
):
    """
    검증된 IdP 신원으로 사용자 프로필을 upsert하고 온보딩 상태를 반환합니다.
    """
    try:
        user = user_crud.upsert_user_from_identity(db, identity)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to upsert user %s", identity.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )
    logger.info("Session started for user %s (onboarding_completed=%s)", user.google_id, user.onboarding_completed)
    return _auth_status(identity, user.onboarding_completed)

@router.get("/check", response_model=user_schema.AuthStatus)
def check_auth(
    identity: Optional[user_schema.TokenData] = Depends(get_optional_identity),
    db: Session = Depends(session.get_db)
):
    """토큰 상태 확인 (실패해도 401 대신 authenticated=false)"""
    if identity is None:
        return user_schema.AuthStatus(authenticated=False)

    user = user_crud.get_user_by_google_id(db, identity.id)
    return _auth_status(identity, bool(user and user.onboarding_completed))

@router.post("/refresh", response_model=user_schema.Token)
def refresh_token(current_user = Depends(get_current_user)):
    """
    유효한 토큰을 저장된 프로필 기준의 새 토큰으로 교환합니다.
    """
    access_token = create_access_token(
        user_schema.TokenData(
            id=current_user.google_id,
            email=current_user.email,
            name=current_user.name,
            picture=current_user.picture,
        )
    )
    return user_schema.Token(access_token=access_token, token_type="bearer")
