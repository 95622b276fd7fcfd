# ----------------------
# file   : app/core/session_middleware.py
# function: 쿠키 기반 세션 미들웨어 (request.state.session 에 세션 값 dict 부착)
# ----------------------

import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.core.config import Settings
from app.models.session import Session, now_ms
from app.services.session_store import MemoryStorageEngine, MongoStorageEngine, SessionStorageEngine
from app.utils.logger import logger

SESSION_COOKIE = "faster_session_id"


class SessionMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, engine: SessionStorageEngine):
        super().__init__(app)
        self.engine = engine

    async def dispatch(self, request: Request, call_next):
        key = request.cookies.get(SESSION_COOKIE)
        request.state.session = {}
        has_session = False
        if key:
            stored = await self.engine.get(key)
            if stored is not None:
                has_session = True
                request.state.session = stored.value

        response = await call_next(request)

        # ----------------------
        # 핸들러 실행 후: 값이 있거나 기존 세션이면 저장, 아니면 남은 쿠키 삭제
        # ----------------------
        session = request.state.session
        if session or has_session:
            if not key:
                key = str(uuid.uuid4())
                response.set_cookie(SESSION_COOKIE, key, httponly=True, samesite="lax")
            await self.engine.set(Session(key=key, value=session, last_access_time=now_ms()))
        elif key:
            response.delete_cookie(SESSION_COOKIE)
        return response


# ----------------------
# param   : config - 서버 설정
# function: SESSION_ENGINE 설정에 맞는 저장소 생성
# return  : SessionStorageEngine
# ----------------------
def build_session_engine(config: Settings) -> SessionStorageEngine:
    if config.session_engine == "mongo":
        from app.db.mongo import get_database

        collection = get_database(config.mongo_db)["sessions"]
        return MongoStorageEngine(collection, expires_in_minutes=config.session_expires_minutes)
    if config.session_engine != "memory":
        logger.warning(f"[SESSION] 알 수 없는 SESSION_ENGINE: {config.session_engine}, memory 사용")
    return MemoryStorageEngine(expires_in_minutes=config.session_expires_minutes)
