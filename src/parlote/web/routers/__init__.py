from parlote.web.routers.eventlog import router as eventlog_router
from parlote.web.routers.sessions import router as sessions_router
from parlote.web.routers.situations import router as situations_router
from parlote.web.routers.system import router as system_router
from parlote.web.routers.usage import router as usage_router

__all__ = [
    "eventlog_router",
    "sessions_router",
    "situations_router",
    "system_router",
    "usage_router",
]
