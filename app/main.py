# app/main.py
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from core.config import settings
from core.logger import logger
from api.v1.upload import router as upload_router
from services.upload_service import close_uploader
from schemas.upload import HealthResponse

ROOT = Path(__file__).resolve().parent.parent


class PublicFiles(StaticFiles):
    """Upload frontend. Only GET and HEAD are served; anything else is a JSON 404."""

    async def get_response(self, path: str, scope):
        if scope["method"] not in ("GET", "HEAD"):
            raise StarletteHTTPException(status_code=404)
        return await super().get_response(path, scope)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"{settings.SERVICE_NAME} running on port {settings.PORT}",
        extra={"action": "startup", "result": "success", "meta": {"backend": settings.UPLOAD_BACKEND}},
    )
    yield
    await close_uploader()


app = FastAPI(title=settings.SERVICE_NAME, version=settings.SERVICE_VERSION, lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Not found"})

    content = {"success": False}
    if isinstance(exc.detail, dict):
        content["error"] = exc.detail.get("message")
        content["code"] = exc.detail.get("code")
        if exc.detail.get("meta"):
            content["meta"] = exc.detail["meta"]
    else:
        content["error"] = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error",
        exc_info=exc,
        extra={"action": "request", "result": "error", "meta": {"path": request.url.path}},
    )
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(
        timestamp=datetime.now(timezone.utc),
        service=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
    )

app.include_router(upload_router)

public_dir = Path(settings.PUBLIC_DIR)
if not public_dir.is_absolute():
    public_dir = ROOT / public_dir
if public_dir.is_dir():
    # mounted last so API routes take precedence; index.html is served for "/"
    app.mount("/", PublicFiles(directory=public_dir, html=True), name="public")


def run():
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
