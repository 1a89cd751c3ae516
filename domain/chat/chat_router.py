import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette import status

from database.session import get_db
from domain.chat import chat_schema
from domain.user import user_crud, user_schema
from security import get_current_identity
from services.completion_client import CompletionError
from services.conversation_service import ConversationService, get_conversation_service
from services.prompt_manager import PromptManager, UnknownAgentError, get_prompt_manager
from . import chat_crud

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Chat"]
)

@router.get("/agents", response_model=List[chat_schema.AgentInfo])
def list_agents(prompt_manager: PromptManager = Depends(get_prompt_manager)):
    """선택 가능한 에이전트 목록"""
    return [
        chat_schema.AgentInfo(
            id=agent.id,
            name=agent.name,
            description=agent.description,
            greeting_style=agent.greeting_style,
            response_length=agent.response_length,
            specializations=list(agent.specializations),
        )
        for agent in prompt_manager.get_all_agents().values()
    ]

@router.post("/chat", response_model=chat_schema.ChatResponse)
async def chat(
    payload: chat_schema.ChatRequest,
    db: Session = Depends(get_db),
    identity: user_schema.TokenData = Depends(get_current_identity),
    conversation: ConversationService = Depends(get_conversation_service)
):
    """메시지 분류 후 고정 응답 또는 LLM 응답 반환"""
    if not payload.message or not payload.agent:
        raise HTTPException(status_code=400, detail="Message and agent are required")

    try:
        user = user_crud.get_user_by_google_id(db, identity.id)
        result = await conversation.handle_message(
            db,
            user_id=identity.id,
            agent_id=payload.agent,
            message=payload.message,
            user=user,
        )
    except UnknownAgentError:
        raise HTTPException(status_code=400, detail="Invalid agent selected")
    except CompletionError as e:
        logger.warning("Completion failed for user %s: %s", identity.id, e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to generate a response")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error while handling chat for user %s", identity.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

    return chat_schema.ChatResponse(
        response=result.response,
        category=result.category.value,
        agent_name=result.agent_name,
    )

@router.get("/chat/history", response_model=chat_schema.ChatHistoryResponse)
def get_chat_history(
    agent: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    identity: user_schema.TokenData = Depends(get_current_identity)
):
    """대화 이력 조회 (오래된 순)"""
    messages = chat_crud.get_recent_messages(db, identity.id, agent=agent, limit=limit)
    return chat_schema.ChatHistoryResponse(
        messages=[chat_schema.ChatMessage.model_validate(message) for message in messages],
        count=len(messages)
    )

@router.delete("/chat/history", response_model=chat_schema.ClearHistoryResponse)
def clear_chat_history(
    agent: Optional[str] = None,
    db: Session = Depends(get_db),
    identity: user_schema.TokenData = Depends(get_current_identity)
):
    """대화 이력 삭제 (agent 지정 시 해당 에이전트만)"""
    try:
        deleted_count = chat_crud.delete_messages(db, identity.id, agent=agent)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to clear chat history for user %s", identity.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

    logger.info("Cleared %d chat messages for user %s (agent=%s)", deleted_count, identity.id, agent or "all")
    return chat_schema.ClearHistoryResponse(
        success=True,
        deleted_count=deleted_count,
        message="Chat history cleared successfully"
    )
