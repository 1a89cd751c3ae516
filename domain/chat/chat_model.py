from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from datetime import datetime, timezone
from database.session import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)  # users.google_id 값 (FK 없음)
    agent = Column(String(32), nullable=False)
    user_message = Column(Text, nullable=False)
    ai_response = Column(Text, nullable=False)
    message_type = Column(String(32), nullable=False)  # 분류 카테고리
    flagged = Column(Boolean, nullable=False, default=False)
    timestamp = Column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        Index("ix_chat_messages_user_agent_timestamp", "user_id", "agent", "timestamp"),
    )
