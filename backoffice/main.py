"""Main FastAPI application entry point"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from backoffice.api.attendance import router as attendance_router
from backoffice.api.clients import router as clients_router
from backoffice.api.errors import register_exception_handlers
from backoffice.api.expenses import router as expenses_router
from backoffice.api.health import API_VERSION, router as health_router
from backoffice.api.projects import router as projects_router
from backoffice.api.quotations import router as quotations_router
from backoffice.api.report_routes import router as report_router
from backoffice.api.users import router as users_router
from backoffice.api.work_completion import router as work_completion_router
from backoffice.config import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="Facilities Back-Office API",
    description="Projects, quotations, attendance, expenses and documents for a facilities-services contractor",
    version=API_VERSION,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

register_exception_handlers(app)

# Include routers
app.include_router(health_router)
app.include_router(projects_router)
app.include_router(expenses_router)
app.include_router(report_router)
app.include_router(attendance_router)
app.include_router(work_completion_router)
app.include_router(quotations_router)
app.include_router(clients_router)
app.include_router(users_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Facilities Back-Office API",
        "version": API_VERSION,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backoffice.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
