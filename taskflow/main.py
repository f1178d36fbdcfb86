import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from taskflow.controllers import all_routers
from taskflow.core.config import Settings, settings
from taskflow.core.database import build_engine, build_session_factory, init_models
from taskflow.core.deps import get_settings
from taskflow.core.exceptions import BusinessException, ErrorCode, translate_domain_error
from taskflow.core.middleware import LoggingMiddleware
from taskflow.core.rate_limit import limiter
from taskflow.domain.errors import DomainError

logger = logging.getLogger(__name__)


def _error_response(error_code: ErrorCode, message: Optional[str] = None, errors=None) -> JSONResponse:
    return JSONResponse(
        status_code=error_code.http_status,
        content={
            "success": False,
            "code": error_code.biz_code,
            "message": message or error_code.default_message,
            "data": None,
            "errors": errors,
        },
    )


def _validation_errors(exc: RequestValidationError) -> list:
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models(app.state.engine)
    logger.info("🚀 TaskFlow API started")
    yield
    await app.state.engine.dispose()
    logger.info("TaskFlow API stopped")


def create_app(app_settings: Settings = settings) -> FastAPI:
    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        description="""
        ## TaskFlow 프로젝트/작업 관리 API

        ### 주요 기능:
        - **프로젝트 관리**: 프로젝트 생성, 수정, 삭제, 멤버 역할 관리
        - **작업 관리**: 상태/진행률, 하위 작업, 댓글, 첨부파일, 선행 작업
        - **대시보드**: 통계, 마감 임박 작업, 생산성 추이
        """,
        version="1.0.0",
        lifespan=lifespan,
    )
    app.dependency_overrides[get_settings] = lambda: app_settings

    # DB 엔진 / 세션 팩토리 (get_db 가 request.app.state 에서 사용)
    app.state.engine = build_engine(app_settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.limiter = limiter

    # 1. CORS 미들웨어 등록
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_credentials=app_settings.cors_origin_list != ["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    # 2. 로그 미들웨어 등록
    app.add_middleware(LoggingMiddleware)

    # 3. 프로메테우스 메트릭 설정 (자동으로 /metrics 엔드포인트 생성)
    Instrumentator().instrument(app).expose(app)

    # 4. 반복문으로 컨트롤러 자동 등록
    for router, prefix, tag in all_routers:
        app.include_router(router, prefix=prefix, tags=[tag])

    # 전역 예외 핸들러
    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        return _error_response(exc.error_code, exc.message, exc.errors)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"⚠️ Rate limit exceeded: {request.method} {request.url.path} from {get_remote_address(request)}")
        return _error_response(ErrorCode.AUTH_RATE_LIMITED)

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        error_code, errors = translate_domain_error(exc)
        if error_code is ErrorCode.INTERNAL_SERVER_ERROR:
            logger.error(f"❌ Domain error on {request.method} {request.url.path}: {exc!r}")
        return _error_response(error_code, errors=errors)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"❌ Validation Error: {request.method} {request.url.path} {exc.errors()}")
        return _error_response(ErrorCode.INVALID_INPUT, errors=_validation_errors(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
        return _error_response(ErrorCode.INTERNAL_SERVER_ERROR)

    return app


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = create_app()
