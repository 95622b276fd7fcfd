# ----------------------
# file   : app/models/session.py
# function: 세션 레코드 스키마
# ----------------------

import time
from typing import Any, Dict

from pydantic import BaseModel, Field


def now_ms() -> int:
    return int(time.time() * 1000)


class Session(BaseModel):
    key: str
    value: Dict[str, Any] = {}
    last_access_time: int = Field(default_factory=now_ms)  # epoch ms
