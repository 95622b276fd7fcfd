# ----------------------
# file   : app/models/file_meta.py
# function: 업로드된 파일 / 폼 엔트리 / 사전 검증 매니페스트 스키마 정의
# ----------------------

from typing import Dict, List, NamedTuple, Optional, Union

from pydantic import BaseModel, Field


class FileDescriptor(BaseModel):
    filename: str
    size: int
    content_type: Optional[str] = None
    tempfile: Optional[str] = None  # 스크래치 파일 경로 (영구 저장 후 제거)

    # 영구 저장(save_file) 시에만 채워짐
    id: Optional[str] = None
    url: Optional[str] = None
    uri: Optional[str] = None

    # read_file 옵션일 때만 채워짐
    data: Optional[bytes] = Field(default=None, repr=False)

    # ----------------------
    # function: 응답용 dict (메모리 바이트 / 빈 필드 제외)
    # return  : dict
    # ----------------------
    def public_dict(self) -> dict:
        return self.model_dump(exclude={"data"}, exclude_none=True)


class FormEntry(NamedTuple):
    field_name: str
    value: Union[str, FileDescriptor]


UploadResult = Dict[str, Union[FileDescriptor, List[FileDescriptor]]]


# ----------------------
# 사전 업로드 검증 (파일 바이트 없음, 선언된 이름/크기만)
# ----------------------
class DeclaredFile(BaseModel):
    name: str
    size: int = Field(ge=0)


class PreUploadManifest(BaseModel):
    value: Dict[str, Union[DeclaredFile, List[DeclaredFile]]]

    # ----------------------
    # function: 필드별 선언 파일을 리스트로 평탄화
    # return  : [(field, DeclaredFile), ...]
    # ----------------------
    def declared_files(self) -> List[tuple]:
        files = []
        for field_name, declared in self.value.items():
            items = declared if isinstance(declared, list) else [declared]
            for item in items:
                files.append((field_name, item))
        return files


def public_result(result: UploadResult) -> Dict[str, Union[dict, List[dict]]]:
    out: Dict[str, Union[dict, List[dict]]] = {}
    for field_name, value in result.items():
        if isinstance(value, list):
            out[field_name] = [item.public_dict() for item in value]
        else:
            out[field_name] = value.public_dict()
    return out
