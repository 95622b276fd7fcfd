# ----------------------
# file   : app/core/config.py
# function: .env / 환경변수에서 서버 설정 로드
# ----------------------

import os
import sys
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# .env 로드
load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


def _get_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


# ----------------------
# class   : Settings
# function: 업로드 / 세션 관련 설정값 묶음
# ----------------------
class Settings(BaseModel):
    upload_dir: str = "uploads"
    upload_extensions: List[str] = []
    upload_max_size_bytes: int = sys.maxsize
    upload_max_file_size_bytes: int = sys.maxsize
    upload_save_file: bool = True
    upload_read_file: bool = False
    upload_use_current_dir: bool = True

    temp_upload_dir: str = "temp_uploads"
    staging_dir: Optional[str] = None
    max_body_size: int = 100 * 1024 * 1024 * 1024  # 100GB

    session_engine: str = "memory"
    session_expires_minutes: int = 60
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "upload_db"

    model_config = {"frozen": True}

    # ----------------------
    # function: 환경변수 → Settings 변환
    # return  : Settings
    # ----------------------
    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            upload_extensions=_get_list("UPLOAD_EXTENSIONS"),
            upload_max_size_bytes=_get_int("UPLOAD_MAX_SIZE_BYTES", sys.maxsize),
            upload_max_file_size_bytes=_get_int("UPLOAD_MAX_FILE_SIZE_BYTES", sys.maxsize),
            upload_save_file=_get_bool("UPLOAD_SAVE_FILE", True),
            upload_read_file=_get_bool("UPLOAD_READ_FILE", False),
            upload_use_current_dir=_get_bool("UPLOAD_USE_CURRENT_DIR", True),
            temp_upload_dir=os.getenv("TEMP_UPLOAD_DIR", "temp_uploads"),
            staging_dir=os.getenv("STAGING_DIR") or None,
            max_body_size=_get_int("MAX_BODY_SIZE", 100 * 1024 * 1024 * 1024),
            session_engine=os.getenv("SESSION_ENGINE", "memory").lower(),
            session_expires_minutes=_get_int("SESSION_EXPIRES_MINUTES", 60),
            mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
            mongo_db=os.getenv("MONGO_DB", "upload_db"),
        )


settings = Settings.from_env()
