"""
Config Status API Route

Lets a frontend decide whether to show the report form without ever
seeing the API key.
"""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/config/status")
async def config_status(http_request: Request):
    client = getattr(http_request.app.state, "client", None)
    return {"is_configured": bool(client is not None and client.is_configured())}
