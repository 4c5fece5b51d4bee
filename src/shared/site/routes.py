"""Routes serving the marketing site pages."""

from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

router = APIRouter(tags=["site"], include_in_schema=False)


def _page_response(request: Request, filename: str) -> FileResponse:
    """Serves a page from the static root, 404 if the file is missing."""
    static_dir: Path = request.app.state.settings.static_dir
    file_path = static_dir / filename
    if not file_path.is_file():
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(path=str(file_path), media_type="text/html")


@router.get("/")
async def index_page(request: Request):
    return _page_response(request, "index.html")


@router.get("/services")
async def services_page(request: Request):
    return _page_response(request, "services.html")


@router.get("/about")
async def about_page(request: Request):
    return _page_response(request, "about.html")


@router.get("/contact")
async def contact_page(request: Request):
    return _page_response(request, "contact.html")


class SiteStaticFiles(StaticFiles):
    """Static assets; any other method on an unmatched path is a 404 rather than a 405."""

    async def get_response(self, path: str, scope):
        if scope["method"] not in ("GET", "HEAD"):
            raise HTTPException(status_code=404, detail="Not Found")
        return await super().get_response(path, scope)
