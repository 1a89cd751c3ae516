"""대화 오케스트레이터

채팅 요청 하나를 처리하는 순서:

1. 에이전트 확인 (알 수 없으면 ``UnknownAgentError``, 저장 없음)
2. 메시지 분류
3. 종료 응답 카테고리면 고정 응답을 저장하고 반환 (LLM 호출 없음)
4. 시스템 프롬프트 구성 (에이전트 + 개인화 + 가이드)
5. 최근 대화 이력 추가
6. LLM 호출 1회
7. 마크다운 제거, 인사말 접두
8. 저장 후 반환

대화 턴은 LLM 응답까지 받은 뒤 한 번에 커밋되므로 실패 시 부분 저장이 없다.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from config import settings
from domain.chat import chat_crud, chat_schema
from domain.user import user_crud, user_model
from services.completion_client import CompletionClient
from services.message_categorizer import MessageCategory
from services.prompt_manager import GuidanceResolution, PromptManager, TERMINAL_CATEGORIES
from services.text_utils import markdown_to_plain_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatResult:
    response: str
    category: MessageCategory
    agent_name: str
    flagged: bool = False


class ConversationService:
    def __init__(self, prompt_manager: PromptManager, completion_client: CompletionClient, history_window: int = 10):
        self.prompt_manager = prompt_manager
        self.completion_client = completion_client
        self.history_window = history_window

    def build_system_prompt(
        self,
        agent_id: str,
        message: str,
        resolution: GuidanceResolution,
        user: Optional[user_model.User],
    ) -> str:
        prompt = self.prompt_manager.get_system_prompt(
            agent_id,
            is_medical_professional=user_crud.is_medical_professional(user),
            user_name=user.name if user else None,
        )
        if user is not None and user.personalized_prompt and self.prompt_manager.needs_personalization(message):
            prompt += f"\n\nUser Context: {user.personalized_prompt}"
        if resolution.guidance:
            prompt += f"\n\nGUIDANCE: {resolution.guidance}"
        return prompt

    def build_history(self, db: Session, user_id: str, agent_id: str) -> List[Dict[str, str]]:
        if self.history_window <= 0:
            return []
        recent = chat_crud.get_recent_messages(db, user_id, agent=agent_id, limit=self.history_window)
        terminal = {category.value for category in TERMINAL_CATEGORIES}
        history = []
        for turn in recent:
            # 고정 안내 응답은 LLM 문맥에서 제외
            if turn.message_type in terminal:
                continue
            history.append({"role": "user", "content": turn.user_message})
            history.append({"role": "assistant", "content": turn.ai_response})
        return history

    def _save_turn(self, db: Session, user_id: str, agent_id: str, message: str, response: str, resolution: GuidanceResolution):
        return chat_crud.create_chat_message(
            db,
            chat_schema.ChatMessageCreate(
                user_id=user_id,
                agent=agent_id,
                user_message=message,
                ai_response=response,
                message_type=resolution.category.value,
                flagged=resolution.flagged,
            ),
        )

    async def handle_message(
        self,
        db: Session,
        user_id: str,
        agent_id: str,
        message: str,
        user: Optional[user_model.User] = None,
    ) -> ChatResult:
        agent = self.prompt_manager.require_agent(agent_id)

        category = self.prompt_manager.categorize(message)
        resolution = self.prompt_manager.resolve_guidance(category)
        logger.info("Chat message from %s for agent %s categorized as %s", user_id, agent_id, category.value)

        if resolution.is_terminal:
            self._save_turn(db, user_id, agent_id, message, resolution.terminal_response, resolution)
            return ChatResult(
                response=resolution.terminal_response,
                category=category,
                agent_name=agent.name,
                flagged=resolution.flagged,
            )

        system_prompt = self.build_system_prompt(agent_id, message, resolution, user)
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(self.build_history(db, user_id, agent_id))
        messages.append({"role": "user", "content": message})

        raw_response = await self.completion_client.complete(messages)
        response = markdown_to_plain_text(raw_response)

        if category == MessageCategory.GREETING:
            greeting = self.prompt_manager.get_personalized_greeting(agent_id, user.name if user else None)
            response = greeting + response

        self._save_turn(db, user_id, agent_id, message, response, resolution)
        logger.info("Saved chat turn for %s (agent=%s, category=%s)", user_id, agent_id, category.value)
        return ChatResult(response=response, category=category, agent_name=agent.name, flagged=resolution.flagged)


def build_conversation_service(prompt_manager: PromptManager) -> ConversationService:
    return ConversationService(
        prompt_manager=prompt_manager,
        completion_client=CompletionClient.from_settings(),
        history_window=settings.CHAT_HISTORY_WINDOW,
    )


def get_conversation_service(request: Request) -> ConversationService:
    return request.app.state.conversation_service
