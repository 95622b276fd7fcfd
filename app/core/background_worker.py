# ----------------------
# file   : app/core/background_worker.py
# function: 만료 세션 주기 정리 작업 (앱 시작 시 start, 종료 시 stop - 생성한 쪽이 수명 관리)
# ----------------------

import asyncio
from typing import Optional

from loguru import logger

from app.models.session import now_ms
from app.services.session_store import SessionStorageEngine


class SessionExpirySweeper:
    def __init__(self, engine: SessionStorageEngine, interval_seconds: Optional[float] = None):
        self.engine = engine
        self.interval_seconds = interval_seconds or engine.expires_in_minutes * 60
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ----------------------
    # param   : current_time - 기준 시각 (epoch ms, 기본: 현재)
    # function: 마지막 접근이 만료 시간보다 오래된 세션 삭제
    # return  : 삭제된 세션 수
    # ----------------------
    async def sweep_once(self, current_time: Optional[int] = None) -> int:
        current_time = current_time if current_time is not None else now_ms()
        expired = 0
        for session in await self.engine.get_all():
            if current_time - session.last_access_time > self.engine.expires_in_ms:
                await self.engine.delete(session.key)
                expired += 1
        if expired:
            logger.info(f"[SWEEPER] 만료 세션 {expired}개 삭제")
        return expired

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("[SWEEPER] 세션 정리 실패")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"[SWEEPER] 시작 (주기 {self.interval_seconds}초)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[SWEEPER] 종료")
