# ----------------------
# file   : app/api/session.py
# function: 현재 세션 조회 / 갱신 API
# ----------------------

from typing import Any, Dict

from fastapi import APIRouter, Body, Request

router = APIRouter()


@router.get("/session")
async def get_session(request: Request):
    return {"session": request.state.session}


# ----------------------
# param   : values - 세션에 병합할 값 (빈 dict 면 세션 비우기)
# function: 세션 값 갱신
# return  : 갱신된 세션
# ----------------------
@router.post("/session")
async def update_session(request: Request, values: Dict[str, Any] = Body(...)):
    if values:
        request.state.session.update(values)
    else:
        request.state.session = {}
    return {"session": request.state.session}
