import logging
from typing import Dict, List, Optional

import httpx

from config import settings

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """외부 LLM 호출 실패 (네트워크, 타임아웃, 비정상 응답, 빈 결과)"""


class CompletionClient:
    """OpenAI 호환 chat completions 엔드포인트 클라이언트"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = base_url.rstrip("/") + "/chat/completions"
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls) -> "CompletionClient":
        return cls(
            base_url=settings.LLM_API_URL,
            api_key=settings.LLM_API_KEY,
            model=settings.LLM_MODEL,
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise CompletionError("Completion request timed out") from e
        except httpx.HTTPError as e:
            raise CompletionError(f"Completion request failed: {e.__class__.__name__}") from e

        if response.status_code != 200:
            logger.warning("Completion API returned %s: %s", response.status_code, response.text[:200])
            raise CompletionError(f"Completion API returned status {response.status_code}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CompletionError("Malformed completion response") from e

        if not content or not content.strip():
            raise CompletionError("Empty completion")
        return content
