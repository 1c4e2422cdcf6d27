import logging
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from envindo.modules.auth.api import router as auth_router, profile_router
from envindo.modules.dashboard.api import router as dashboard_router
from envindo.modules.catalog.api import router as services_router
from envindo.modules.transactions.api import router as transactions_router
from envindo.modules.waste_collection.api import router as waste_collection_router
from envindo.modules.invoices.api import router as invoices_router
from envindo.modules.documents.api import router as documents_router
from envindo.modules.manifests.api import router as manifests_router
from envindo.modules.admin.api import router as admin_router
from envindo.modules.superadmin.api import router as superadmin_router
from envindo.core.database import db_manager
from envindo.core.dependencies import get_db
from envindo.core.global_error_handler import register_global_exception_handlers
from envindo.core.config import settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Authorization and workflow engine for the Envindo waste-management back office.",
    version="1.0.0"
)

# Register global exception handlers
register_global_exception_handlers(app)

@app.on_event("shutdown")
async def shutdown_event():
    """Close database connections on shutdown."""
    await db_manager.close()
    logger.info("Database engine closed.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router, prefix="/api")
app.include_router(profile_router, prefix="/api")
app.include_router(dashboard_router, prefix="/api")
app.include_router(services_router, prefix="/api")
app.include_router(transactions_router, prefix="/api")
app.include_router(waste_collection_router, prefix="/api")
app.include_router(invoices_router, prefix="/api")
app.include_router(documents_router, prefix="/api")
app.include_router(manifests_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(superadmin_router, prefix="/api")

@app.get("/api/")
async def root():
    return {"status": "success", "message": f"{settings.APP_NAME} API is running"}

@app.get("/api/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    await db.execute(text("SELECT 1"))
    return {"status": "success", "message": "healthy"}
