from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List

class ChatRequest(BaseModel):
    message: Optional[str] = None
    agent: Optional[str] = None

class ChatResponse(BaseModel):
    response: str
    category: str
    agent_name: str

class ChatMessageCreate(BaseModel):
    user_id: str
    agent: str
    user_message: str
    ai_response: str
    message_type: str
    flagged: bool = False

class ChatMessage(ChatMessageCreate):
    id: int
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)

class ChatHistoryResponse(BaseModel):
    messages: List[ChatMessage]
    count: int

class ClearHistoryResponse(BaseModel):
    success: bool
    deleted_count: int
    message: str

class AgentInfo(BaseModel):
    id: str
    name: str
    description: str
    greeting_style: str
    response_length: str
    specializations: List[str]
