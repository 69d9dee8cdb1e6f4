"""FastAPI 入口：实验室笔记本的本地单用户后端。"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from bioplastic_lab.api import router as api_router
from bioplastic_lab.config import get_settings
from bioplastic_lab.db import Base, SessionLocal, engine
from bioplastic_lab.errors import AuthenticationFailed, PermissionDenied, ValidationFailed
from bioplastic_lab.services.store import SqlStore
from bioplastic_lab.services.users import UserDirectory

logger = logging.getLogger(__name__)


def seed_default_admin() -> bool:
    """首次启动时写入默认管理员，已存在则跳过。"""

    settings = get_settings()
    with SessionLocal() as db:
        created = UserDirectory(SqlStore(db)).ensure_default_admin(
            email=settings.default_admin_email,
            password=settings.default_admin_password,
            name=settings.default_admin_name,
        )
    if created:
        logger.info("Seeded default admin %s", settings.default_admin_email)
    return created


def create_app() -> FastAPI:
    """应用工厂，便于测试与拓展路由。"""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Bioplastic Lab Notebook API", version="0.1.0")

    @app.on_event("startup")
    def init_models() -> None:
        """启动时确保表存在并初始化默认管理员。"""

        Base.metadata.create_all(bind=engine)
        seed_default_admin()

    @app.exception_handler(PermissionDenied)
    def permission_denied(_request: Request, exc: PermissionDenied) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(AuthenticationFailed)
    def authentication_failed(_request: Request, exc: AuthenticationFailed) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)})

    @app.exception_handler(ValidationFailed)
    def validation_failed(_request: Request, exc: ValidationFailed) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "database": settings.database_url}

    app.include_router(api_router)
    return app


app = create_app()
