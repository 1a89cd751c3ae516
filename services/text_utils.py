import re

# 순서대로 적용 (굵게 -> 기울임 -> 코드 -> 헤더 -> 링크 -> 목록)
_MARKDOWN_RULES = (
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"\*(.*?)\*"), r"\1"),
    (re.compile(r"`(.*?)`"), r"\1"),
    (re.compile(r"#{1,6}\s"), ""),
    (re.compile(r"\[(.*?)\]\(.*?\)"), r"\1"),
    (re.compile(r"^\s*[-*+]\s", re.MULTILINE), "• "),
    (re.compile(r"^\s*\d+\.\s", re.MULTILINE), ""),
)


def markdown_to_plain_text(text: str) -> str:
    """LLM 응답의 마크다운 표기를 일반 텍스트로 변환"""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()
