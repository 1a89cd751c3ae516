from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from .chat_model import ChatMessage
from .chat_schema import ChatMessageCreate

def create_chat_message(db: Session, chat_message: ChatMessageCreate) -> ChatMessage:
    """대화 한 턴(질문+응답)을 한 번의 커밋으로 저장"""
    db_message = ChatMessage(
        **chat_message.model_dump(),
        timestamp=datetime.now(timezone.utc)
    )
    db.add(db_message)
    db.commit()
    db.refresh(db_message)
    return db_message

def get_recent_messages(db: Session, user_id: str, agent: Optional[str] = None, limit: int = 50) -> List[ChatMessage]:
    """최근 대화 조회 (최신순으로 가져온 뒤 오래된 순으로 반환)"""
    query = db.query(ChatMessage).filter(ChatMessage.user_id == user_id)
    if agent:
        query = query.filter(ChatMessage.agent == agent)
    messages = query.order_by(desc(ChatMessage.timestamp), desc(ChatMessage.id)).limit(limit).all()
    messages.reverse()
    return messages

def delete_messages(db: Session, user_id: str, agent: Optional[str] = None) -> int:
    """사용자 대화 일괄 삭제 (agent 지정 시 해당 에이전트만)"""
    query = db.query(ChatMessage).filter(ChatMessage.user_id == user_id)
    if agent:
        query = query.filter(ChatMessage.agent == agent)
    deleted_count = query.delete(synchronize_session=False)
    db.commit()
    return deleted_count

def count_messages(db: Session, user_id: str, agent: Optional[str] = None) -> int:
    query = db.query(ChatMessage).filter(ChatMessage.user_id == user_id)
    if agent:
        query = query.filter(ChatMessage.agent == agent)
    return query.count()
