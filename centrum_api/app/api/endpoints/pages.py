"""
HTML pages of the public site and the admin panel.

Both pages are static files from ``STATIC_DIR``; a missing file yields
404.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from centrum_api.app.core.config import Settings
from centrum_api.app.core.security import get_settings


router = APIRouter()


def _page(app_settings: Settings, name: str) -> FileResponse:
    path = app_settings.resolve_path(app_settings.static_dir) / name
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return FileResponse(path)


@router.get("/", include_in_schema=False)
def index_page(app_settings: Settings = Depends(get_settings)) -> FileResponse:
    return _page(app_settings, "index.html")


@router.get("/admin", include_in_schema=False)
def admin_page(app_settings: Settings = Depends(get_settings)) -> FileResponse:
    return _page(app_settings, "admin.html")
