"""Health check and metrics endpoints"""

import asyncio
from fastapi import APIRouter, status
from fastapi.responses import Response
from datetime import datetime
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from backoffice.database import get_db
from backoffice.services.s3_service import get_s3_service
from botocore.exceptions import ClientError
from backoffice.config import settings

router = APIRouter(tags=["Health"])

API_VERSION = "1.0.0"


@router.get("/health", status_code=status.HTTP_200_OK)
async def basic_health_check():
    """
    Basic health check endpoint (no authentication required)

    Returns simple health status and timestamp
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z"
    }


@router.get("/api/v1/health", status_code=status.HTTP_200_OK)
async def detailed_health_check():
    """
    Detailed health check with service dependency status (no authentication required)

    Checks connectivity to:
    - Database
    - S3 bucket
    and reports whether SMTP notifications are configured.
    """
    services = {}
    overall_status = "healthy"

    # Check database connectivity
    try:
        async for db in get_db():
            result = await db.execute(text("SELECT 1"))
            result.scalar_one()
            services["database"] = "connected"
            break
    except Exception as e:
        services["database"] = f"disconnected: {str(e)}"
        overall_status = "degraded"

    # Check S3 connectivity
    try:
        s3_client = get_s3_service().s3_client
        await asyncio.to_thread(s3_client.head_bucket, Bucket=settings.s3_bucket)
        services["s3"] = "connected"
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        if error_code == "404":
            services["s3"] = f"bucket_not_found: {settings.s3_bucket}"
        else:
            services["s3"] = f"disconnected: {error_code}"
        overall_status = "degraded"
    except Exception as e:
        services["s3"] = f"disconnected: {str(e)}"
        overall_status = "degraded"

    services["smtp"] = "configured" if settings.notifications_enabled else "disabled"

    return {
        "status": overall_status,
        "version": API_VERSION,
        "environment": settings.environment,
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "services": services
    }


@router.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus scrape endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
