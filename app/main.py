import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.routers import upload
from app.schemas.upload import StorageHealthResponse
import structlog

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

if not settings.storage_configured:
    logger.warning("Supabase storage is not configured; uploads will fail")

# Create FastAPI app
app = FastAPI(
    title="Supabase Storage Upload API",
    description="Stores product images in a Supabase Storage bucket via its S3 endpoint",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Supabase Storage Upload API is running"}


@app.get("/health")
async def health_check():
    """Detailed health check endpoint."""
    return {
        "status": "healthy",
        "service": "supabase-storage-upload-api",
        "version": "1.0.0"
    }


@app.get("/health/storage", response_model=StorageHealthResponse)
async def storage_health():
    """Report storage configuration without contacting the bucket."""
    configured = settings.storage_configured
    return StorageHealthResponse(
        status="configured" if configured else "misconfigured",
        bucket=settings.supabase_storage_bucket,
        configured=configured
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
