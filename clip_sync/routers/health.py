# clip_sync/routers/health.py
"""
System health check endpoint.
Returns status of the backend, the sync loop and both remotes.
"""

from datetime import datetime

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", summary="System health check")
async def health_check(request: Request):
    """
    Returns:
    - Backend status
    - Whether the sync loop task is running
    - Reachability of the Bosch camera cloud and of Google Drive
    """
    state = request.app.state
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "sync_loop": "running" if state.sync_loop.running else "stopped",
        "camera_cloud": "unknown",
        "drive": "unknown",
    }

    try:
        await state.source.list_events()
        result["camera_cloud"] = "ok"
    except Exception as e:
        result["camera_cloud"] = f"error: {str(e)}"
        result["status"] = "degraded"

    try:
        await state.store.get_available_bytes()
        result["drive"] = "ok"
    except Exception as e:
        result["drive"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
