import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from fastapi import Request

from services.message_categorizer import MessageCategorizer, MessageCategory, KeywordMatcher, build_matchers

logger = logging.getLogger(__name__)

GREETING_STYLES = ("friendly", "nurturing", "professional")

# 카테고리 -> responseGuidance 설정 키
GUIDANCE_KEYS = {
    MessageCategory.EMPTY: "empty",
    MessageCategory.TOO_LONG: "too_long",
    MessageCategory.EMERGENCY: "emergency",
    MessageCategory.DANGEROUS: "dangerous_advice",
    MessageCategory.INAPPROPRIATE: "inappropriate_content",
    MessageCategory.NON_HEALTH: "non_health_content",
    MessageCategory.CONSULTATION_NEEDED: "consultation_needed",
    MessageCategory.ROUTINE_HEALTH: "routine_health",
}

TERMINAL_CATEGORIES = frozenset({
    MessageCategory.EMPTY,
    MessageCategory.TOO_LONG,
    MessageCategory.EMERGENCY,
    MessageCategory.DANGEROUS,
    MessageCategory.INAPPROPRIATE,
    MessageCategory.NON_HEALTH,
})
GUIDED_CATEGORIES = frozenset({
    MessageCategory.CONSULTATION_NEEDED,
    MessageCategory.ROUTINE_HEALTH,
})
FLAGGED_CATEGORIES = frozenset({
    MessageCategory.EMERGENCY,
    MessageCategory.INAPPROPRIATE,
})


class UnknownAgentError(LookupError):
    def __init__(self, agent_id: str):
        super().__init__(f"Unknown agent: {agent_id}")
        self.agent_id = agent_id


@dataclass(frozen=True)
class AgentConfig:
    id: str
    name: str
    description: str
    system_prompt: str
    greeting_style: str
    response_length: str
    specializations: Tuple[str, ...] = ()
    system_prompt_medico: Optional[str] = None


@dataclass(frozen=True)
class GuidanceResolution:
    category: MessageCategory
    terminal_response: Optional[str] = None
    guidance: Optional[str] = None
    flagged: bool = False
    priority: str = "low"

    @property
    def is_terminal(self) -> bool:
        return self.terminal_response is not None


@dataclass(frozen=True)
class PromptsConfig:
    agents: Mapping[str, AgentConfig]
    response_guidance: Mapping[str, Mapping[str, str]]
    matchers: Mapping[str, KeywordMatcher]
    greeting_templates: Mapping[str, Mapping[str, str]]
    metadata: Mapping[str, str] = field(default_factory=dict)


def _parse_agent(agent_id: str, raw: Dict[str, Any]) -> AgentConfig:
    style = raw.get("greetingStyle", "friendly")
    if style not in GREETING_STYLES:
        raise ValueError(f"Agent '{agent_id}' has unknown greeting style '{style}'")
    return AgentConfig(
        id=agent_id,
        name=raw["name"],
        description=raw.get("description", ""),
        system_prompt=raw["systemPrompt"],
        system_prompt_medico=raw.get("systemPromptMedico"),
        greeting_style=style,
        response_length=raw.get("responseLength", "medium"),
        specializations=tuple(raw.get("specializations", ())),
    )


def load_prompts_config(path: Path) -> PromptsConfig:
    """프롬프트 설정 JSON을 읽어 읽기 전용 구조로 변환 (기동 시 1회)"""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)

    agents = {agent_id: _parse_agent(agent_id, entry) for agent_id, entry in raw["agents"].items()}
    guidance = {key: MappingProxyType(dict(entry)) for key, entry in raw.get("responseGuidance", {}).items()}
    templates = {style: MappingProxyType(dict(entry)) for style, entry in raw.get("greetingTemplates", {}).items()}

    config = PromptsConfig(
        agents=MappingProxyType(agents),
        response_guidance=MappingProxyType(guidance),
        matchers=build_matchers(raw.get("keywords", {})),
        greeting_templates=MappingProxyType(templates),
        metadata=MappingProxyType(dict(raw.get("metadata", {}))),
    )
    logger.info(
        "Loaded prompts config v%s (%d agents, %d keyword sets)",
        config.metadata.get("version", "?"), len(config.agents), len(config.matchers),
    )
    return config


def time_of_day(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    return "evening"


class PromptManager:
    """에이전트 레지스트리, 응답 가이드, 인사말, 개인화 판단을 담당"""

    def __init__(self, config: PromptsConfig):
        self.config = config
        self.categorizer = MessageCategorizer(config.matchers)

    @classmethod
    def from_file(cls, path: Path) -> "PromptManager":
        return cls(load_prompts_config(path))

    # 에이전트 레지스트리

    def get_agent(self, agent_id: str) -> Optional[AgentConfig]:
        return self.config.agents.get(agent_id)

    def require_agent(self, agent_id: str) -> AgentConfig:
        agent = self.get_agent(agent_id)
        if agent is None:
            raise UnknownAgentError(agent_id)
        return agent

    def get_all_agents(self) -> Mapping[str, AgentConfig]:
        return self.config.agents

    def is_valid_agent(self, agent_id: str) -> bool:
        return agent_id in self.config.agents

    def get_system_prompt(self, agent_id: str, is_medical_professional: bool = False, user_name: Optional[str] = None) -> str:
        agent = self.require_agent(agent_id)
        if is_medical_professional and agent.system_prompt_medico:
            return agent.system_prompt_medico
        return agent.system_prompt

    # 분류 및 응답 가이드

    def categorize(self, message: str) -> MessageCategory:
        return self.categorizer.categorize(message)

    def resolve_guidance(self, category: MessageCategory) -> GuidanceResolution:
        flagged = category in FLAGGED_CATEGORIES
        if category not in TERMINAL_CATEGORIES and category not in GUIDED_CATEGORIES:
            return GuidanceResolution(category=category, flagged=flagged)

        key = GUIDANCE_KEYS[category]
        entry = self.config.response_guidance.get(key)
        if entry is None:
            raise KeyError(f"No response guidance configured for '{key}'")
        priority = entry.get("priority", "low")

        if category in TERMINAL_CATEGORIES:
            message = entry.get("message")
            if not message:
                raise KeyError(f"Response guidance '{key}' has no message")
            return GuidanceResolution(category=category, terminal_response=message, flagged=flagged, priority=priority)

        guidance = entry.get("guidance")
        if not guidance:
            raise KeyError(f"Response guidance '{key}' has no guidance text")
        return GuidanceResolution(category=category, guidance=guidance, flagged=flagged, priority=priority)

    def needs_personalization(self, message: str) -> bool:
        matcher = self.config.matchers.get("health_related")
        return bool(matcher and matcher.matches(message))

    # 인사말

    def get_personalized_greeting(self, agent_id: str, user_name: Optional[str], now: Optional[datetime] = None) -> str:
        if not user_name or not user_name.strip():
            return ""
        agent = self.get_agent(agent_id)
        if agent is None:
            return ""

        templates = self.config.greeting_templates.get(agent.greeting_style)
        if not templates:
            return ""

        now = now or datetime.now()
        template = templates.get(time_of_day(now.hour), "")
        first_name = user_name.split()[0]
        return template.replace("{name}", first_name)

    def get_metadata(self) -> Mapping[str, str]:
        return self.config.metadata


def get_prompt_manager(request: Request) -> PromptManager:
    return request.app.state.prompt_manager
