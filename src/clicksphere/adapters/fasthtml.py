"""
FastHTML Web Adapter

Routes the JSON API and the Datastar SSE push stream onto the counter core.

```python
from clicksphere.adapters.fasthtml import create_app
app = create_app()
```
"""

import logging
import secrets
from typing import Any, AsyncIterator, Dict, Optional

from datastar_py import ServerSentEventGenerator as SSE
from datastar_py.starlette import DatastarResponse
from fasthtml.common import FastHTML
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..app.configuration import ApplicationConfig, get_config
from ..app.sync import SyncProtocolAdapter
from ..core.counter import Counter, PeerNotification
from ..core.errors import ClickSphereError
from ..persistence import CounterStore, create_store
from ..realtime.hub import BroadcastHub, Connection

logger = logging.getLogger(__name__)


def _counter_payload(counter: Counter, message: Optional[str] = None) -> Dict[str, Any]:
    wire = counter.to_wire()
    payload = {
        "success": True,
        "value": wire["value"],
        "lastUpdatedAt": wire["lastUpdatedAt"],
        "totalIncrements": wire["totalIncrements"],
    }
    if message:
        payload["message"] = message
    return payload


def _failure(error: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse({"success": False, "error": error}, status_code=status_code)


async def event_stream(hub: BroadcastHub, connection: Connection) -> AsyncIterator[str]:
    """
    SSE body for one client.

    Opens the connection when the client starts reading, announces its id
    (needed to post notifications), then relays every change event as a
    Datastar signals patch. Idle periods produce SSE comment heartbeats.
    """
    hub.register(connection)
    try:
        yield SSE.patch_signals({"connectionId": connection.id})
        async for event in hub.stream(connection):
            if event is None:
                yield ": heartbeat\n\n"
            else:
                yield SSE.patch_signals(event.to_wire())
    finally:
        hub.unregister(connection.id)


def register_routes(app: FastHTML, sync: SyncProtocolAdapter) -> None:
    """
    Register the counter API on a FastHTML app.

    Args:
        app: FastHTML application to register on
        sync: Adapter serving the configured counter
    """

    async def get_count():
        try:
            counter = await sync.request_snapshot()
        except ClickSphereError as e:
            logger.error(f"Error fetching counter: {e}")
            return _failure("Failed to fetch counter")
        return JSONResponse(_counter_payload(counter))

    async def increment():
        try:
            counter = await sync.request_increment()
        except ClickSphereError as e:
            logger.error(f"Error incrementing counter: {e}")
            return _failure("Failed to increment counter")
        return JSONResponse(_counter_payload(counter, "Counter incremented successfully"))

    async def reset():
        try:
            counter = await sync.request_reset()
        except ClickSphereError as e:
            logger.error(f"Error resetting counter: {e}")
            return _failure("Failed to reset counter")
        return JSONResponse(_counter_payload(counter, "Counter reset successfully"))

    async def get_stats():
        try:
            stats = await sync.request_stats()
        except ClickSphereError as e:
            logger.error(f"Error fetching stats: {e}")
            return _failure("Failed to fetch statistics")
        return JSONResponse({"success": True, "stats": stats.to_wire()})

    async def get_online():
        return JSONResponse({"success": True, "online": sync.hub.connection_count})

    async def events():
        return DatastarResponse(event_stream(sync.hub, sync.hub.connect()))

    async def notify(request: Request):
        # Plain Starlette endpoint: the raw body is validated here, not form-parsed
        connection_id = request.query_params.get("connection_id", "")
        try:
            notification = PeerNotification.model_validate_json(await request.body())
        except ValidationError as e:
            logger.debug(f"Rejected notification from {connection_id}: {e}")
            return _failure("Invalid notification", status_code=422)

        if not sync.receive_notification(connection_id, notification):
            return _failure("Connection is not open", status_code=409)
        return JSONResponse({"success": True})

    rt = app.route
    rt("/api/count", methods=["GET"])(get_count)
    rt("/api/increment", methods=["POST"])(increment)
    rt("/api/reset", methods=["POST"])(reset)
    rt("/api/stats", methods=["GET"])(get_stats)
    rt("/api/online", methods=["GET"])(get_online)
    rt("/api/events", methods=["GET"])(events)
    app.add_route(Route("/api/notify", notify, methods=["POST"]))


def not_found(request, exc):
    return _failure("Page not found", status_code=404)


def server_error(request, exc):
    logger.error(f"Unhandled error on {request.url.path}: {exc}")
    return _failure("Something went wrong!")


def create_app(
    config: Optional[ApplicationConfig] = None,
    store: Optional[CounterStore] = None,
    hub: Optional[BroadcastHub] = None,
) -> FastHTML:
    """
    Build the FastHTML application around a store, a hub and their adapter.

    The store is started (with the configured connection retries) when the
    app starts serving and closed on shutdown.

    Args:
        config: Application configuration, defaults to `get_config()`
        store: Counter store, defaults to one built from `config.store`
        hub: Broadcast hub, defaults to one built from `config.hub`
    """
    config = config or get_config()
    store = store or create_store(config.store.backend, config.store.database_url, config.store.echo)
    hub = hub or BroadcastHub(config.hub.queue_size, config.hub.heartbeat_interval)
    sync = SyncProtocolAdapter(store, hub, config.store.counter_name)

    async def lifespan(app):
        await store.start(retries=config.store.connect_retries, delay=config.store.connect_delay)
        logger.info(f"ClickSphere serving counter '{config.store.counter_name}'")
        try:
            yield
        finally:
            await store.close()
            logger.info("Counter store closed")

    app = FastHTML(
        debug=config.debug,
        secret_key=config.web.secret_key or secrets.token_hex(32),
        exception_handlers={404: not_found, 500: server_error},
        lifespan=lifespan,
    )
    register_routes(app, sync)
    return app
