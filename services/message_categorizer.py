"""메시지 분류기

사용자 채팅 메시지를 키워드/정규식 테이블과 대조하여 정확히 하나의
``MessageCategory`` 를 부여한다. 평가 순서가 곧 우선순위이며 첫 매치가 이긴다.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

MAX_MESSAGE_LENGTH = 5000
MAX_GREETING_LENGTH = 3


class MessageCategory(str, Enum):
    EMPTY = "empty"
    TOO_LONG = "too_long"
    EMERGENCY = "emergency"
    DANGEROUS = "dangerous"
    INAPPROPRIATE = "inappropriate"
    NON_HEALTH = "non_health"
    GREETING = "greeting"
    CONSULTATION_NEEDED = "consultation_needed"
    ROUTINE_HEALTH = "routine_health"
    GENERAL = "general"


@dataclass(frozen=True)
class KeywordMatcher:
    """하나의 카테고리 패턴 집합. substring 모드는 소문자 부분 문자열 비교."""

    name: str
    patterns: Tuple[str, ...]
    mode: str = "substring"
    _compiled: Tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.mode not in ("substring", "regex"):
            raise ValueError(f"Unsupported match mode for '{self.name}': {self.mode}")
        if self.mode == "regex":
            compiled = tuple(re.compile(p, re.IGNORECASE) for p in self.patterns)
        else:
            compiled = tuple(p.lower() for p in self.patterns)
        object.__setattr__(self, "_compiled", compiled)

    def matches(self, message: str) -> bool:
        if self.mode == "regex":
            return any(pattern.search(message) for pattern in self._compiled)
        normalized = message.lower()
        return any(keyword in normalized for keyword in self._compiled)


def build_matchers(keyword_config: Mapping[str, Mapping]) -> Mapping[str, KeywordMatcher]:
    """설정의 ``keywords`` 블록을 읽기 전용 매처 테이블로 변환"""
    matchers = {}
    for name, entry in keyword_config.items():
        patterns: Iterable[str] = entry.get("patterns", ())
        matchers[name] = KeywordMatcher(
            name=name,
            patterns=tuple(patterns),
            mode=entry.get("match", "substring"),
        )
    return MappingProxyType(matchers)


class MessageCategorizer:
    REQUIRED_SETS = (
        "emergency",
        "dangerous_advice",
        "inappropriate",
        "non_health",
        "greetings",
        "consultation_needed",
        "routine_health",
    )

    def __init__(self, matchers: Mapping[str, KeywordMatcher]):
        missing = [name for name in self.REQUIRED_SETS if name not in matchers]
        if missing:
            raise ValueError(f"Missing keyword sets: {', '.join(missing)}")
        self.matchers = matchers

    def _match(self, name: str, message: str) -> bool:
        return self.matchers[name].matches(message)

    def is_empty(self, message: str) -> bool:
        return not message or not message.strip()

    def is_too_long(self, message: str) -> bool:
        return len(message) > MAX_MESSAGE_LENGTH

    def is_emergency(self, message: str) -> bool:
        return self._match("emergency", message)

    def requests_dangerous_advice(self, message: str) -> bool:
        return self._match("dangerous_advice", message)

    def is_inappropriate(self, message: str) -> bool:
        return self._match("inappropriate", message)

    def is_non_health(self, message: str) -> bool:
        return self._match("non_health", message)

    def is_greeting(self, message: str) -> bool:
        lowered = message.lower().strip()
        return self._match("greetings", lowered) or len(lowered) <= MAX_GREETING_LENGTH

    def requires_consultation(self, message: str) -> bool:
        return self._match("consultation_needed", message)

    def is_routine_health(self, message: str) -> bool:
        return self._match("routine_health", message)

    def categorize(self, message: str) -> MessageCategory:
        if self.is_empty(message):
            return MessageCategory.EMPTY
        # 길이 검사는 응급 키워드보다 먼저
        if self.is_too_long(message):
            return MessageCategory.TOO_LONG
        if self.is_emergency(message):
            return MessageCategory.EMERGENCY
        if self.requests_dangerous_advice(message):
            return MessageCategory.DANGEROUS
        if self.is_inappropriate(message):
            return MessageCategory.INAPPROPRIATE
        if self.is_non_health(message):
            return MessageCategory.NON_HEALTH
        if self.is_greeting(message):
            return MessageCategory.GREETING
        routine = self.is_routine_health(message)
        if self.requires_consultation(message) and not routine:
            return MessageCategory.CONSULTATION_NEEDED
        if routine:
            return MessageCategory.ROUTINE_HEALTH
        return MessageCategory.GENERAL
