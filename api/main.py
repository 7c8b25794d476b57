from __future__ import annotations

import logging
import math
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import quote

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from api.schemas import ErrorPageModel, MetaListResponse, NotFoundResponse
from core.config import APP_NAME, APP_VERSION, Settings
from core.data import DataInitError, DataSnapshot, load_snapshot
from core.resolver import ROUTE_DRUG_FREQUENCY, ROUTE_DRUG_TYPE, NotFound, resolve_age, resolve_category
from core.views import age_view, drug_frequency_view, drug_type_view, error_view, home_view

logger = logging.getLogger(__name__)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _server_error(name: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", name)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def get_snapshot(request: Request) -> DataSnapshot:
    snapshot: Optional[DataSnapshot] = getattr(request.app.state, "snapshot", None)
    if snapshot is None:
        raise RuntimeError("Data snapshot is not loaded")
    return snapshot


def _not_found(snapshot: DataSnapshot, result: NotFound) -> JSONResponse:
    return _json(error_view(snapshot, result), status_code=404)


def create_app(snapshot: Optional[DataSnapshot] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the API. Without an injected snapshot the data is loaded at start-up.

    A DataInitError raised from the lifespan aborts start-up before requests are served.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "snapshot", None) is None:
            app.state.snapshot = load_snapshot(settings)
        logger.info("Data loaded. Serving %s", APP_NAME)
        yield

    app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=_lifespan)
    app.state.snapshot = snapshot

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.img_dir.is_dir():
        app.mount(settings.static_prefix, StaticFiles(directory=str(settings.img_dir)), name="img")

    @app.exception_handler(404)
    async def _route_not_found(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=404, content=NotFoundResponse(path=request.url.path).model_dump())

    @app.get("/")
    def home(snapshot: DataSnapshot = Depends(get_snapshot)):
        try:
            return _json(home_view(snapshot))
        except Exception as exc:
            return _server_error("home", exc)

    @app.get("/meta/ages", response_model=MetaListResponse)
    def meta_ages(snapshot: DataSnapshot = Depends(get_snapshot)):
        return _json({"values": list(snapshot.ages)})

    @app.get("/meta/categories", response_model=MetaListResponse)
    def meta_categories(snapshot: DataSnapshot = Depends(get_snapshot)):
        return _json({"values": list(snapshot.categories)})

    @app.get("/age")
    def age_index(snapshot: DataSnapshot = Depends(get_snapshot)):
        if not snapshot.ages:
            return JSONResponse(status_code=500, content={"error": "No age data found", "type": "DataError"})
        return RedirectResponse(url=f"/age/{quote(snapshot.ages[0])}")

    @app.get("/drug_type")
    def drug_type_index(snapshot: DataSnapshot = Depends(get_snapshot)):
        if not snapshot.categories:
            return JSONResponse(status_code=500, content={"error": "No drug type data found", "type": "DataError"})
        return RedirectResponse(url=f"/drug_type/{quote(snapshot.categories[0])}")

    @app.get("/drug_frequency")
    def drug_frequency_index(snapshot: DataSnapshot = Depends(get_snapshot)):
        if not snapshot.categories:
            return JSONResponse(status_code=500, content={"error": "No frequency data found", "type": "DataError"})
        return RedirectResponse(url=f"/drug_frequency/{quote(snapshot.categories[0])}")

    @app.get("/age/{age}", responses={404: {"model": ErrorPageModel}})
    def age_page(age: str, snapshot: DataSnapshot = Depends(get_snapshot)):
        try:
            result = resolve_age(snapshot, age)
            if isinstance(result, NotFound):
                return _not_found(snapshot, result)
            return _json(age_view(snapshot, result))
        except Exception as exc:
            return _server_error("age_page", exc)

    @app.get("/drug_type/{drug_type}", responses={404: {"model": ErrorPageModel}})
    def drug_type_page(drug_type: str, snapshot: DataSnapshot = Depends(get_snapshot)):
        try:
            result = resolve_category(snapshot, drug_type, route=ROUTE_DRUG_TYPE)
            if isinstance(result, NotFound):
                return _not_found(snapshot, result)
            return _json(drug_type_view(snapshot, result))
        except Exception as exc:
            return _server_error("drug_type_page", exc)

    @app.get("/drug_frequency/{drug_type}", responses={404: {"model": ErrorPageModel}})
    def drug_frequency_page(drug_type: str, snapshot: DataSnapshot = Depends(get_snapshot)):
        try:
            result = resolve_category(snapshot, drug_type, route=ROUTE_DRUG_FREQUENCY)
            if isinstance(result, NotFound):
                return _not_found(snapshot, result)
            return _json(drug_frequency_view(snapshot, result))
        except Exception as exc:
            return _server_error("drug_frequency_page", exc)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    settings = Settings.from_env()
    try:
        snapshot = load_snapshot(settings)
    except DataInitError as exc:
        logger.error("Failed to initialize data: %s", exc)
        logger.error("Hint: ensure %s exists and is included in your deployed files.", settings.data_file)
        sys.exit(1)
    uvicorn.run(create_app(snapshot, settings), host="0.0.0.0", port=settings.port)
