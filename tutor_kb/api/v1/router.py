# 路由汇总
from fastapi import APIRouter
from tutor_kb.api.v1.endpoints import vapi

api_router = APIRouter()

# 挂载语音平台回调模块 (访问地址: /api/v1/vapi/...)
api_router.include_router(vapi.router, prefix="/vapi", tags=["语音平台回调模块"])
