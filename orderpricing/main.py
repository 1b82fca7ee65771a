from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from orderpricing.api.routes_pricing import router as pricing_router
from orderpricing.api.routes_reports import router as reports_router
from orderpricing.core.config import get_settings
from orderpricing.core.logging import configure_logging
from orderpricing.domain.pricing.analytics import OrderBatchError

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)


@app.exception_handler(OrderBatchError)
async def order_batch_handler(_: Request, exc: OrderBatchError):
    logger.warning("rejected analytics batch: %s", exc)
    return JSONResponse(
        status_code=413,
        content={
            "detail": str(exc),
            "error": "order_batch_too_large",
        },
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(pricing_router)
app.include_router(reports_router)
