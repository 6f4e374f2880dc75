"""FastAPI dashboard server over the medicine inventory view.

Serves the list, summary tiles, alerts and exports computed by
``InventoryView``. Data comes from the medicine API through
``InventoryService``; a background scheduler keeps it fresh.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from .models.medicine import MedicineRecord
from .scheduler import create_background_scheduler
from .services.exporter import render_csv, render_pdf
from .services.inventory_service import InventoryService
from .utils.config import get_config
from .utils.exceptions import (
    AuthenticationError,
    FeatureDisabledError,
    InvalidArgumentError,
    InventoryAPIError,
)
from .utils.logger import get_server_logger
from .views.inventory_view import ExportFormat, InventoryView, SortField

config = get_config()
logger = get_server_logger()


def record_to_dict(view: InventoryView, record: MedicineRecord) -> Dict[str, Any]:
    """Record fields plus the list-view status flags."""
    status = view.status_for(record)
    data = record.to_dict()
    data.update({
        "isExpired": status.is_expired,
        "isExpiringSoon": status.is_expiring_soon,
        "isLowStock": status.is_low_stock,
        "state": status.state.value,
    })
    return data


def create_app(service: Optional[InventoryService] = None, enable_scheduler: bool = True) -> FastAPI:
    """
    Build the dashboard application.

    Args:
        service: Inventory service to serve; a default one is built if omitted
        enable_scheduler: Start the background refresh in the lifespan
    """
    service = service or InventoryService()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initial fetch and background refresh."""
        logger.info("=" * 60)
        logger.info("Medicine Inventory Dashboard Starting")
        logger.info("=" * 60)
        logger.info(f"Environment:      {config.env.environment}")
        logger.info(f"API base URL:     {config.env.api_base_url}")
        logger.info(f"Refresh interval: {config.env.refresh_interval_minutes} min")
        logger.info("=" * 60)

        try:
            await run_in_threadpool(service.refresh)
        except (InventoryAPIError, AuthenticationError) as e:
            logger.error(f"Initial refresh failed: {e.message}")

        scheduler = None
        if enable_scheduler:
            scheduler = create_background_scheduler(service)
            scheduler.start()
            logger.info("Refresh scheduler started")

        yield

        if scheduler is not None:
            logger.info("Shutting down refresh scheduler...")
            scheduler.shutdown(wait=True)
        service.close()
        logger.info("Dashboard server shut down.")

    app = FastAPI(
        title="Medicine Inventory Dashboard",
        description="Search, summary, alerts and exports over the medicine inventory",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service

    def _query_view(search: str = "", sort: Optional[str] = None, direction: str = "asc") -> InventoryView:
        # Request parameters only ever touch a per-request copy.
        view = service.view.copy()
        view.set_search_term(search)
        view.set_sort(sort or SortField.EXPIRY_DATE, direction)
        return view

    @app.get("/")
    async def root():
        return {
            "service": "Medicine Inventory Dashboard",
            "version": "1.0.0",
            "status": "running"
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "environment": config.env.environment,
            "medicines": len(service.view),
            "last_refreshed": service.last_refreshed.isoformat() if service.last_refreshed else None
        }

    @app.get("/medicines")
    def list_medicines(
        search: str = "",
        sort: Optional[str] = None,
        direction: str = "asc",
        page: int = 0,
        page_size: int = config.inventory.default_page_size
    ):
        view = _query_view(search, sort, direction)
        items = view.get_page(page, page_size)
        return {
            "items": [record_to_dict(view, r) for r in items],
            "total": len(view.filtered_records()),
            "page": page,
            "page_size": page_size,
            "pages": view.page_count(page_size),
            "sort": view.sort_field.value,
            "direction": view.sort_direction.value,
        }

    @app.get("/medicines/barcode/{code}")
    async def find_by_barcode(code: str):
        record = service.view.find_by_barcode(code)
        if record is None:
            raise HTTPException(status_code=404, detail=f"No medicine with barcode {code}")
        return record_to_dict(service.view, record)

    # Handlers that call the medicine API are plain ``def`` so FastAPI runs
    # them in its threadpool instead of on the event loop.

    @app.post("/medicines", status_code=201)
    def add_medicine(data: Any = Body(...)):
        record = service.add_medicine(data)
        return record_to_dict(service.view, record)

    @app.put("/medicines/{medicine_id}")
    def update_medicine(medicine_id: str, data: Any = Body(...)):
        record = service.update_medicine(medicine_id, data)
        return record_to_dict(service.view, record)

    @app.delete("/medicines/{medicine_id}")
    def delete_medicine(medicine_id: str):
        service.delete_medicine(medicine_id)
        return {"status": "deleted", "id": medicine_id}

    @app.get("/summary")
    async def summary():
        result = service.view.compute_summary()
        return {**result.to_dict(), "tiles": [tile.to_dict() for tile in result.tiles()]}

    @app.get("/alerts")
    async def alerts():
        view = service.view
        found = service.alerts()
        return {
            "expiringSoon": [record_to_dict(view, r) for r in found["expiring_soon"]],
            "lowStock": [record_to_dict(view, r) for r in found["low_stock"]],
            "invalidDates": [w.to_dict() for w in view.parse_warnings],
        }

    @app.get("/logs")
    def inventory_logs():
        return [log.to_dict() for log in service.get_logs()]

    @app.get("/export/csv")
    def export_csv(search: str = ""):
        table = _query_view(search).export_rows(ExportFormat.CSV)
        return Response(
            content=render_csv(table),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{config.export.csv_filename}"'}
        )

    @app.get("/export/pdf")
    def export_pdf(search: str = ""):
        table = _query_view(search).export_rows(ExportFormat.PDF_TABLE)
        return Response(
            content=render_pdf(table, title=config.export.pdf_title),
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{config.export.pdf_filename}"'}
        )

    # ------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
        logger.warning(f"Bad request: {exc.message}")
        return JSONResponse(
            status_code=400,
            content={"error": exc.message, "details": exc.details, "status_code": 400}
        )

    @app.exception_handler(FeatureDisabledError)
    async def feature_disabled_handler(request: Request, exc: FeatureDisabledError):
        return JSONResponse(status_code=404, content={"error": exc.message, "status_code": 404})

    @app.exception_handler(AuthenticationError)
    async def authentication_handler(request: Request, exc: AuthenticationError):
        logger.error(f"Upstream rejected credentials: {exc.message}")
        return JSONResponse(status_code=401, content={"error": exc.message, "status_code": 401})

    @app.exception_handler(InventoryAPIError)
    async def upstream_error_handler(request: Request, exc: InventoryAPIError):
        logger.error(f"Upstream API error: {exc.message}")
        return JSONResponse(status_code=502, content={"error": exc.message, "status_code": 502})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(f"HTTP {exc.status_code}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "status_code": exc.status_code}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if not config.is_production else "An error occurred"
            }
        )

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=config.env.port)
