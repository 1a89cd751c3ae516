from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from domain.user import user_model, user_schema

def get_user_by_google_id(db: Session, google_id: str) -> Optional[user_model.User]:
    return db.query(user_model.User).filter(user_model.User.google_id == google_id).first()

def upsert_user_from_identity(db: Session, identity: user_schema.TokenData) -> user_model.User:
    """IdP 신원으로 사용자 생성 또는 기본 정보 갱신 (google_id 기준)"""
    user = get_user_by_google_id(db, identity.id)
    if user is None:
        user = user_model.User(
            google_id=identity.id,
            email=identity.email,
            name=identity.name,
            picture=identity.picture,
            onboarding_completed=False,
        )
        db.add(user)
    else:
        if identity.email is not None:
            user.email = identity.email
        if identity.name is not None:
            user.name = identity.name
        if identity.picture is not None:
            user.picture = identity.picture
        user.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user

def complete_onboarding(db: Session, google_id: str, onboarding_data: Dict[str, Any], personalized_prompt: str):
    """온보딩 데이터와 개인화 프롬프트를 함께 저장 (없으면 None)"""
    user = get_user_by_google_id(db, google_id)
    if not user:
        return None

    user.onboarding_data = onboarding_data
    user.personalized_prompt = personalized_prompt
    user.onboarding_completed = True
    user.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user

def is_medical_professional(user: Optional[user_model.User]) -> bool:
    if user is None or not user.onboarding_data:
        return False
    return user.onboarding_data.get("profession") == "medico"
