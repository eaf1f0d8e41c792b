import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routers import auth, health, repairs, uploads, users
from .models.user import Base
from .db import engine
from .core.config import settings as app_settings
from .core.errors import ServiceError
from .core.settings import settings

import repair_desk.models.repair_ticket  # noqa: F401
import repair_desk.models.attachment  # noqa: F401
import repair_desk.models.ticket_log  # noqa: F401
import repair_desk.models.line_oa_link  # noqa: F401


logging.basicConfig(
    level=app_settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="Repair Desk API")


@app.on_event("startup")
def on_startup():
    if settings.AUTO_DB_BOOTSTRAP:
        # Create tables in dev if missing.
        Base.metadata.create_all(bind=engine)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(health.router)
app.include_router(auth.router)
app.include_router(repairs.router)
app.include_router(users.router)
app.include_router(uploads.router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
