from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

# FastAPI creates the app object and defines the routes
from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from reporting import EncodingError
from resolution.errors import InvalidArgument

from .config import Settings
from .tools import ToolRegistry, UnknownTool, build_registry

log = logging.getLogger(__name__)

# How often an in-flight call checks for a gone client or a shutdown.
DISCONNECT_POLL_INTERVAL = 0.1


async def watch_cancellation(
    request: Any,
    cancel: threading.Event,
    shutdown: threading.Event,
    interval: float = DISCONNECT_POLL_INTERVAL,
) -> None:
    """
    Set `cancel` once the client disconnects or the server shuts down.

    Runs beside a tool call and is cancelled when the call finishes.
    """
    while not cancel.is_set():
        if shutdown.is_set() or await request.is_disconnected():
            cancel.set()
            return
        await asyncio.sleep(interval)


def create_app(settings: Optional[Settings] = None, registry: Optional[ToolRegistry] = None) -> FastAPI:
    """
    HTTP transport for the tool registry.

      GET  /tools         -> tool names, descriptions and input schemas
      POST /tools/{name}  -> {"arguments": {...}} in, tool result envelope out

    A tool call that could not be processed (bad input, encoder failure) is an
    HTTP error. A resolution that found nothing is a 200 whose payload says so.

    Each call gets its own cancellation event, set when the client disconnects
    or the server shuts down; the call's timeout scope hangs off it.
    """
    settings = settings or Settings.from_env()
    registry = registry or build_registry(settings)

    shutdown = threading.Event()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        log.info("domain tools ready: %s", ", ".join(t.name for t in registry.tools()))
        yield
        log.info("shutting down, cancelling in-flight lookups")
        shutdown.set()

    app = FastAPI(title="Domain Tools", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.shutdown = shutdown

    @app.get("/tools")
    def list_tools() -> Dict[str, Any]:
        return {"tools": [t.to_dict() for t in registry.tools()]}

    @app.post("/tools/{name}")
    async def call_tool(name: str, request: Request, payload: Any = Body(None)) -> JSONResponse:
        arguments = payload.get("arguments") if isinstance(payload, dict) else payload

        cancel = threading.Event()
        watcher = asyncio.ensure_future(watch_cancellation(request, cancel, shutdown))
        try:
            # Lookups block; keep them off the event loop.
            result = await run_in_threadpool(registry.call, name, arguments, cancel)
        except UnknownTool as e:
            raise HTTPException(status_code=404, detail=str(e))
        except InvalidArgument as e:
            raise HTTPException(status_code=400, detail=str(e))
        except EncodingError as e:
            log.error("tool %s produced an unencodable result: %s", name, e)
            raise HTTPException(status_code=500, detail=str(e))
        finally:
            watcher.cancel()

        return JSONResponse(content=result.to_dict())

    return app
