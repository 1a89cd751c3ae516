from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text
from database.session import Base


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    google_id = Column(String(64), unique=True, index=True, nullable=False)  # 외부 IdP 계정 ID
    email = Column(String(255), index=True, nullable=True)
    name = Column(String(255), nullable=True)
    picture = Column(String(1024), nullable=True)

    # 온보딩 설문 (분기별 필드만 저장되는 문서)
    onboarding_data = Column(JSON, nullable=True)
    personalized_prompt = Column(Text, nullable=True)
    onboarding_completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
