# app/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api import session, upload
from app.core.background_worker import SessionExpirySweeper
from app.core.config import Settings, settings
from app.core.errors import register_exception_handlers
from app.core.limit_upload import LimitUploadSizeMiddleware
from app.core.session_middleware import SessionMiddleware, build_session_engine
from app.core.upload_middleware import PreUploadValidator, UploadHandler
from app.db.mongo import close_client
from app.models.upload_options import UploadOptions
from app.utils.logger import logger


# ----------------------
# param   : config - 업로드 / 세션 설정
# function: 설정값으로 업로드 옵션 생성 (생성 후 변경 불가)
# return  : UploadOptions
# ----------------------
def upload_options_from(config: Settings) -> UploadOptions:
    return UploadOptions.merge(
        path=config.upload_dir,
        extensions=config.upload_extensions,
        max_size_bytes=config.upload_max_size_bytes,
        max_file_size_bytes=config.upload_max_file_size_bytes,
        save_file=config.upload_save_file,
        read_file=config.upload_read_file,
        use_current_dir=config.upload_use_current_dir,
    )


def create_app(config: Settings = settings) -> FastAPI:
    session_engine = build_session_engine(config)
    sweeper = SessionExpirySweeper(session_engine)

    # ----------------------
    # 세션 저장소 초기화가 끝난 뒤에 요청을 받는다
    # ----------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("[INIT] 세션 저장소 초기화 시작")
        await session_engine.init()
        sweeper.start()
        logger.info("[INIT] 세션 저장소 초기화 완료")
        try:
            yield
        finally:
            await sweeper.stop()
            close_client()

    app = FastAPI(lifespan=lifespan)

    options = upload_options_from(config)
    app.state.upload_handler = UploadHandler(
        options,
        temp_upload_dir=config.temp_upload_dir,
        staging_dir=config.staging_dir,
    )
    app.state.pre_upload_validator = PreUploadValidator(options)
    app.state.session_engine = session_engine
    app.state.session_sweeper = sweeper

    # ----------------------
    # function: 미들웨어 (바디 크기 제한 → 세션)
    # ----------------------
    app.add_middleware(SessionMiddleware, engine=session_engine)
    app.add_middleware(LimitUploadSizeMiddleware, max_body_size=config.max_body_size)

    register_exception_handlers(app)

    # ----------------------
    # function: API 라우터 등록
    # ----------------------
    app.include_router(upload.router)
    app.include_router(session.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    logger.info(f"[INIT] 업로드 경로: {options.path}, 허용 확장자: {options.extensions or 'ALL'}")
    return app


app = create_app()
