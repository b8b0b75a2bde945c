"""FastAPI application for the staffdesk API."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import staffdesk
from staffdesk.api.errors import setup_exception_handlers
from staffdesk.api.routes.ai_logs import router as ai_logs_router
from staffdesk.api.routes.audit import router as audit_router
from staffdesk.api.routes.commissions import router as commissions_router
from staffdesk.api.routes.employees import router as employees_router
from staffdesk.api.routes.health import router as health_router
from staffdesk.api.routes.kpis import router as kpis_router
from staffdesk.api.routes.sessions import router as sessions_router
from staffdesk.api.routes.vacations import router as vacations_router
from staffdesk.config.settings import get_settings
from staffdesk.db.session import close_db
from staffdesk.logging_config import RequestContextMiddleware, configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(json_output=settings.log_json, log_level=settings.log_level)
    yield
    await close_db()


app = FastAPI(title="Staffdesk API", version=staffdesk.__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestContextMiddleware)

setup_exception_handlers(app)

app.include_router(health_router)
app.include_router(ai_logs_router)
app.include_router(audit_router)
# fixed paths like /api/employees/kpis must register before /api/employees/{employee_id}
app.include_router(kpis_router)
app.include_router(sessions_router)
app.include_router(vacations_router)
app.include_router(employees_router)
app.include_router(commissions_router)
