import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

from domain.user import user_router, user_model
from domain.auth import auth_router
from domain.chat import chat_router, chat_model
from domain.onboarding import onboarding_router
from database.session import engine
from services.conversation_service import build_conversation_service
from services.prompt_manager import PromptManager

user_model.Base.metadata.create_all(bind=engine)
chat_model.Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="RyoForge Health Backend API",
    description="Persona-based healthcare chat backend",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# 요청 핸들러에 의존성으로 전달되는 공유 컴포넌트 (기동 시 1회 생성)
app.state.prompt_manager = PromptManager.from_file(settings.PROMPTS_PATH)
app.state.conversation_service = build_conversation_service(app.state.prompt_manager)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(user_router.router, prefix="/api")
app.include_router(auth_router.router, prefix="/api")
app.include_router(onboarding_router.router, prefix="/api")
app.include_router(chat_router.router, prefix="/api")

@app.get("/")
async def root():
    return {"message": "Hello RyoForge World"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
