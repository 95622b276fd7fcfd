# ----------------------
# file   : app/models/upload_options.py
# function: 업로드 미들웨어 옵션 스키마 (생성 시 기본값과 병합, 이후 변경 불가)
# ----------------------

import sys
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

UNBOUNDED = sys.maxsize


class UploadOptions(BaseModel):
    path: str = "uploads"
    extensions: List[str] = []
    max_size_bytes: int = Field(UNBOUNDED, alias="maxSizeBytes", ge=0)
    max_file_size_bytes: int = Field(UNBOUNDED, alias="maxFileSizeBytes", ge=0)
    save_file: bool = Field(True, alias="saveFile")
    read_file: bool = Field(False, alias="readFile")
    use_current_dir: bool = Field(True, alias="useCurrentDir")

    # ----------------------
    # camelCase(원본 API) / snake_case 둘 다 허용
    # ----------------------
    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    # ----------------------
    # param   : overrides - 기본값 위에 덮어쓸 옵션 (dict)
    # param   : kwargs - 개별 옵션
    # function: 기본값 + 사용자 옵션 병합
    # return  : UploadOptions (immutable)
    # ----------------------
    @classmethod
    def merge(cls, overrides: Optional[Dict[str, Any]] = None, **kwargs: Any) -> "UploadOptions":
        aliases = {field.alias: name for name, field in cls.model_fields.items() if field.alias}
        values: Dict[str, Any] = {}
        for key, value in {**(overrides or {}), **kwargs}.items():
            values[aliases.get(key, key)] = value
        return cls.model_validate(values)
