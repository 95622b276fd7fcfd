# ----------------------
# file   : app/db/mongo.py
# function: MongoDB 연결 객체 생성 (세션 저장소용)
# ----------------------

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import settings
from app.utils.logger import logger

_client: Optional[AsyncIOMotorClient] = None


# ----------------------
# param   : uri - 접속 URI (기본: MONGO_URI 환경변수)
# function: 프로세스 단위 클라이언트 생성 (최초 호출 시 한 번)
# return  : AsyncIOMotorClient
# ----------------------
def get_client(uri: Optional[str] = None) -> AsyncIOMotorClient:
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(uri or settings.mongo_uri)
        logger.info("[MONGO] 클라이언트 생성")
    return _client


def get_database(name: Optional[str] = None) -> AsyncIOMotorDatabase:
    return get_client()[name or settings.mongo_db]


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
