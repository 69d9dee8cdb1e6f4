"""API 路由包入口。"""

from fastapi import APIRouter

from bioplastic_lab.api import audit, auth, experiments, practices, users

router = APIRouter(prefix="/api")

# 注册子路由
router.include_router(auth.router, prefix="/auth", tags=["认证"])
router.include_router(users.router, prefix="/users", tags=["用户"])
router.include_router(experiments.router, prefix="/experiments", tags=["实验"])
router.include_router(practices.router, prefix="/practices", tags=["练习"])
router.include_router(audit.router, prefix="/audit", tags=["审计"])
