from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite는 요청 스레드 간 커넥션 공유를 허용해야 함
    connect_args["check_same_thread"] = False
elif settings.DATABASE_URL.startswith("mysql"):
    # UTF-8 인코딩을 위한 데이터베이스 연결 설정
    connect_args.update({"charset": "utf8mb4", "use_unicode": True})

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_recycle=300,
    connect_args=connect_args
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
