from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from core.config_loader import settings
from core.errors import register_error_handlers
from core.log_config import configure_logging

from schedule.router import schedule_router
from shift.router import shift_router
from assignment.router import assignment_router
from staffing.router import staffing_router
import models_bootstrap

configure_logging()

openapi_tags = [
    {
        "name": "Schedules",
        "description": "Schedule lifecycle and shift templates",
    },
    {
        "name": "Assignments",
        "description": "Assign and unassign staff on shift-dates",
    },
    {
        "name": "Staffing",
        "description": "Read-only staffing calendar",
    },
    {
        "name": "Health Checks",
        "description": "Application health checks",
    }
]

app = FastAPI(title="Rota scheduling engine", openapi_tags=openapi_tags)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            str(origin).strip("/") for origin in settings.BACKEND_CORS_ORIGINS
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_error_handlers(app)

app.include_router(schedule_router, prefix="/api")
app.include_router(shift_router, prefix="/api")
app.include_router(assignment_router, prefix="/api")
app.include_router(staffing_router, prefix="/api")



@app.get("/health", tags=['Health Checks'])
def read_root():
    return {"health": "true"}
