"""
CodeRabbit Reports API - FastAPI backend for generating and browsing reports
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coderabbit_reports import __version__
from coderabbit_reports.config.validated_settings import load_settings
from coderabbit_reports.infrastructure.api_clients.coderabbit_client import CodeRabbitClient
from coderabbit_reports.infrastructure.logging import configure_logging
from coderabbit_reports.infrastructure.stores.factory import build_report_store
from coderabbit_reports.infrastructure.stores.local_report_store import LocalReportStore

from .routes import config_status, reports

logger = logging.getLogger(__name__)

app = FastAPI(
    title="CodeRabbit Reports API",
    description="API for generating CodeRabbit developer activity reports and browsing their history",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": __version__}


app.include_router(config_status.router, prefix="/api", tags=["Config"])
app.include_router(reports.router, prefix="/api", tags=["Reports"])


@app.on_event("startup")
async def _startup_reports():
    settings = load_settings()
    configure_logging(settings.logging)
    app.state.client = CodeRabbitClient(settings.client)
    try:
        store = build_report_store(settings.storage)
    except Exception as e:
        logger.error(f"Report storage unavailable, falling back to in-process store: {e}")
        store = None
    # history endpoints always need somewhere to read from
    app.state.store = store if store is not None else LocalReportStore()


@app.on_event("shutdown")
async def _shutdown_reports():
    client = getattr(app.state, "client", None)
    if client is not None:
        await client.close()
    store = getattr(app.state, "store", None)
    if store is not None and hasattr(store, "close"):
        store.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
