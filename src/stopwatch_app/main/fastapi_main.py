import argparse
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import uvicorn
from fastapi import FastAPI, Query, Request, WebSocket
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

# Architecture Imports
from stopwatch_app.adapters.fastapi_adapters.helper_adapters import StopwatchSession
from stopwatch_app.adapters.fastapi_adapters.schemas import StopwatchRecordIn
from stopwatch_app.adapters.memory_adapters.in_memory_record_adapter import FALLBACK_FIRST_ID, InMemoryRecordAdapter
from stopwatch_app.adapters.memory_adapters.sql_record_adapter import SqlRecordAdapter
from stopwatch_app.config import Settings
from stopwatch_app.core.ports.clock_port import ClockSource
from stopwatch_app.core.store_router import StoreRouter
from stopwatch_app.utils import custom_exception as ce
from stopwatch_app.utils.logging_handler import setup_logger

logger = setup_logger(__name__)

RECORDS_PATH = "/api/stopwatch-records"


@dataclass
class Args:
    host: str = "0.0.0.0"
    port: int = 8000
    database_url: Optional[str] = None


def _error(status_code: int, message: str, details=None) -> JSONResponse:
    content = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _parse_id(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


def build_store(settings: Settings) -> StoreRouter:
    primary = None
    if settings.database_url:
        primary = SqlRecordAdapter(settings.database_url, connect_timeout=settings.call_timeout)
    return StoreRouter(
        primary=primary,
        fallback=InMemoryRecordAdapter(first_id=FALLBACK_FIRST_ID if primary is not None else 1),
        connect_retries=settings.connect_retries,
        retry_delay=settings.retry_delay,
        call_timeout=settings.call_timeout,
        cooldown=settings.cooldown,
    )


# --- APP FACTORY ---
def create_app(settings: Optional[Settings] = None, clock: Optional[ClockSource] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = build_store(settings)
        app.state.store = store
        # connection is attempted in the background; early requests use the fallback
        store.start()

        yield

        # Cleanup
        await store.close()
        logger.info("Record stores closed.")

    app = FastAPI(lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = "Invalid record data" if request.method == "POST" else "Invalid request parameters"
        logger.info(f"400 at {request.url}: {exc.errors()}")
        return _error(400, message, details=jsonable_encoder(exc.errors()))

    @app.get("/api/health")
    async def health(request: Request):
        store: StoreRouter = request.app.state.store
        return {"status": "ok", "storage": "database" if store.is_connected else "memory"}

    @app.get(RECORDS_PATH)
    async def list_records(request: Request, userId: Optional[int] = Query(default=None)):
        try:
            records = await request.app.state.store.list(userId)
        except Exception:
            logger.exception("Error fetching stopwatch records")
            return _error(500, "Failed to fetch stopwatch records")
        return [record.to_dict() for record in records]

    @app.get(RECORDS_PATH + "/{record_id}")
    async def get_record(request: Request, record_id: str):
        parsed_id = _parse_id(record_id)
        if parsed_id is None:
            return _error(400, "Invalid ID format")
        try:
            record = await request.app.state.store.get(parsed_id)
        except Exception:
            logger.exception("Error fetching stopwatch record")
            return _error(500, "Failed to fetch stopwatch record")
        if record is None:
            return _error(404, "Record not found")
        return record.to_dict()

    @app.post(RECORDS_PATH, status_code=201)
    async def create_record(request: Request, body: StopwatchRecordIn):
        try:
            record = await request.app.state.store.create(body.to_new_record())
        except ce.RecordValidationError as e:
            return _error(400, str(e), details=e.details)
        except Exception:
            logger.exception("Error creating stopwatch record")
            return _error(500, "Failed to create stopwatch record")
        return JSONResponse(status_code=201, content=record.to_dict())

    @app.delete(RECORDS_PATH + "/{record_id}", status_code=204)
    async def delete_record(request: Request, record_id: str):
        parsed_id = _parse_id(record_id)
        if parsed_id is None:
            return _error(400, "Invalid ID format")
        try:
            deleted = await request.app.state.store.delete(parsed_id)
        except Exception:
            logger.exception("Error deleting stopwatch record")
            return _error(500, "Failed to delete stopwatch record")
        if not deleted:
            return _error(404, "Record not found")
        return Response(status_code=204)

    @app.websocket("/ws/stopwatch")
    async def stopwatch_endpoint(websocket: WebSocket):
        session = StopwatchSession(
            websocket,
            store=websocket.app.state.store,
            tick_interval=settings.tick_interval,
            clock=clock,
        )
        await session.run()

    return app


def run_app(args: Args) -> None:
    settings = Settings.from_env()
    settings.host = args.host
    settings.port = args.port
    if args.database_url:
        settings.database_url = args.database_url
    app = create_app(settings)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port)
    except Exception as e:
        logger.error(f"error in run_app: {e}")
        raise


def main() -> None:
    defaults = Settings.from_env()
    parser = argparse.ArgumentParser(description="Stopwatch with saved timing records.")
    parser.add_argument("--host", type=str, default=defaults.host)
    parser.add_argument("--port", type=int, default=defaults.port)
    parser.add_argument("--database-url", type=str, default=None,
                        help="SQLAlchemy URL of the records database (overrides DATABASE_URL)")
    parsed_args = parser.parse_args()
    run_app(Args(**vars(parsed_args)))


if __name__ == "__main__":
    logger.info("=" * 50)
    main()
