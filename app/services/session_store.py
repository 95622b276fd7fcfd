# ----------------------
# file   : app/services/session_store.py
# function: 세션 저장소 인터페이스 + 구현체 (메모리 / MongoDB)
# ----------------------

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from app.models.session import Session
from app.utils.logger import logger


# ----------------------
# class   : SessionStorageEngine
# function: 저장소가 반드시 구현해야 하는 기능 (init / get / set / delete / get_all)
#           추상 메서드를 하나라도 빠뜨리면 인스턴스 생성 단계에서 TypeError
# ----------------------
class SessionStorageEngine(ABC):
    def __init__(self, expires_in_minutes: int = 60):
        self.expires_in_minutes = expires_in_minutes

    @property
    def expires_in_ms(self) -> int:
        return self.expires_in_minutes * 60 * 1000

    @abstractmethod
    async def init(self) -> None:
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[Session]:
        ...

    @abstractmethod
    async def set(self, session: Session) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def get_all(self) -> List[Session]:
        ...


class MemoryStorageEngine(SessionStorageEngine):
    """Process-local engine, for development and tests."""

    def __init__(self, expires_in_minutes: int = 60):
        super().__init__(expires_in_minutes)
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        async with self._lock:
            self._sessions.clear()

    async def get(self, key: str) -> Optional[Session]:
        session = self._sessions.get(key)
        return session.model_copy(deep=True) if session else None

    async def set(self, session: Session) -> None:
        async with self._lock:
            self._sessions[session.key] = session.model_copy(deep=True)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._sessions.pop(key, None)

    async def get_all(self) -> List[Session]:
        return [s.model_copy(deep=True) for s in self._sessions.values()]


# ----------------------
# class   : MongoStorageEngine
# function: sessions 컬렉션에 {_id: key, value, last_access_time} 문서로 저장
# ----------------------
class MongoStorageEngine(SessionStorageEngine):
    def __init__(self, collection: AsyncIOMotorCollection, expires_in_minutes: int = 60):
        super().__init__(expires_in_minutes)
        self.collection = collection

    async def init(self) -> None:
        await self.collection.create_index("last_access_time")
        logger.info(f"[SESSION] MongoDB 세션 저장소 초기화: {self.collection.name}")

    async def get(self, key: str) -> Optional[Session]:
        doc = await self.collection.find_one({"_id": key})
        if doc is None:
            return None
        return self._to_session(doc)

    async def set(self, session: Session) -> None:
        await self.collection.replace_one(
            {"_id": session.key},
            {"_id": session.key, "value": session.value, "last_access_time": session.last_access_time},
            upsert=True,
        )

    async def delete(self, key: str) -> None:
        await self.collection.delete_one({"_id": key})

    async def get_all(self) -> List[Session]:
        sessions = []
        async for doc in self.collection.find({}):
            sessions.append(self._to_session(doc))
        return sessions

    @staticmethod
    def _to_session(doc: dict) -> Session:
        return Session(
            key=doc["_id"],
            value=doc.get("value", {}),
            last_access_time=doc.get("last_access_time", 0),
        )
