"""FastAPI application factory."""

import json
import logging
import mimetypes
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, Response
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse

from calorie_planner.app_logging import configure_logging
from calorie_planner.containers import AppContainer
from calorie_planner.domain.errors import GatewayError, GenerationError, NotFoundError
from calorie_planner.domain.nutrition import BarcodeProduct, FoodDetails, SearchResponse
from calorie_planner.services.products import DEFAULT_PAGE_SIZE

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_NOT_FOUND_HTML = "<h1>404 Not Found</h1>"


def create_app(container: AppContainer) -> FastAPI:  # noqa: C901
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    static_root = Path(container.settings.static_dir).resolve()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.middleware("http")
    async def cors(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Answer preflight requests and add CORS headers to every response."""
        if request.method == "OPTIONS":
            response: Response = Response(status_code=204)
        else:
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("Unhandled error on %s", request.url.path)
                response = _error(500, "Server error")
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        """Turn provider failures into JSON errors."""
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        status_code = 404 if isinstance(exc, NotFoundError) else 500
        content: dict[str, object] = {"error": str(exc) or "Server error"}
        if isinstance(exc, GenerationError) and exc.raw is not None:
            content["raw"] = exc.raw
        return JSONResponse(content, status_code=status_code)

    @app.get("/api/search", response_model=None)
    async def search(
        request: Request,
        q: str | None = None,
        page: str | None = None,
        page_size: str | None = None,
    ) -> SearchResponse | JSONResponse:
        """Search the open product database by text."""
        state_container: AppContainer = request.app.state.container
        logger.info("Search: %s", q or "-")
        if not q:
            return _error(400, "Missing query")
        return await state_container.product_gateway.search_by_text(
            q,
            page=_parse_int(page, 1),
            page_size=_parse_int(page_size, DEFAULT_PAGE_SIZE),
        )

    @app.get("/api/food", response_model=None)
    async def food(
        request: Request, food_id: str | None = None
    ) -> FoodDetails | JSONResponse:
        """Return serving details for a FatSecret food."""
        state_container: AppContainer = request.app.state.container
        logger.info("Food: %s", food_id or "-")
        if not food_id:
            return _error(400, "Missing food_id")
        return await state_container.nutrition_gateway.lookup_details(food_id)

    @app.get("/api/barcode", response_model=None)
    async def barcode(
        request: Request, barcode: str | None = None
    ) -> BarcodeProduct | JSONResponse:
        """Look up a product by barcode."""
        state_container: AppContainer = request.app.state.container
        logger.info("Barcode: %s", barcode or "-")
        if not barcode:
            return _error(400, "Missing barcode")
        return await state_container.product_gateway.search_by_barcode(barcode)

    @app.post("/api/food-suggest", response_model=None)
    async def food_suggest(request: Request) -> dict[str, object] | JSONResponse:
        """Estimate macros for a food name with the generative model."""
        gateway = request.app.state.container.generative_gateway
        if gateway is None:
            return _error(500, "Missing GEMINI_API_KEY")
        body = await _read_json_body(request)
        query = str(body.get("query") or "").strip()
        logger.info("Food suggest: %s", query or "-")
        if not query:
            return _error(400, "Missing query")
        return await gateway.suggest_nutrition(query)

    @app.post("/api/label-ocr", response_model=None)
    async def label_ocr(request: Request) -> dict[str, object] | JSONResponse:
        """Read macros from a base64 nutrition label image."""
        gateway = request.app.state.container.generative_gateway
        if gateway is None:
            return _error(500, "Missing GEMINI_API_KEY")
        body = await _read_json_body(request)
        image = body.get("image") or ""
        mime_type = body.get("mimeType") or "image/jpeg"
        if not image:
            return _error(400, "Missing image")
        logger.info("Label OCR: %s, %s chars", mime_type, len(str(image)))
        return await gateway.extract_from_label_image(str(image), str(mime_type))

    @app.get("/{file_path:path}", response_model=None)
    async def static_file(file_path: str) -> FileResponse | HTMLResponse:
        """Serve front-end files from the static directory."""
        target = _resolve_static(static_root, file_path or "index.html")
        if target is None:
            return HTMLResponse(_NOT_FOUND_HTML, status_code=404)
        media_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
        return FileResponse(target, media_type=media_type)

    return app


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _read_json_body(request: Request) -> dict[str, object]:
    """Read the whole body as a JSON object, treating anything else as empty."""
    raw = await request.body()
    try:
        parsed = json.loads(raw or b"{}")
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _parse_int(value: str | None, default: int) -> int:
    """Parse an integer query parameter, falling back to a default."""
    if value is None or not value.strip():
        return default
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return default


def _resolve_static(root: Path, file_path: str) -> Path | None:
    """Return the file under root for a request path, if it exists."""
    target = (root / file_path).resolve()
    if not target.is_relative_to(root) or not target.is_file():
        return None
    return target
