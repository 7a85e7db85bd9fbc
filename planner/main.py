import asyncio
from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Query, status, APIRouter
from planner.api.routes import (
    attendees as attendees_router,
    auth as auth_router,
    events as events_router,
    friends as friends_router,
    health as health_router,
    notifications as notifications_router,
    photos as photos_router,
    users as users_router,
)
from planner.api.routes.auth import limiter
from planner.db.session import engine, Base
from planner.cache.redis_client import cache
from planner.events.consumer import run_worker
from planner.websocket.manager import manager
from planner.core.config import settings
from planner.core.exceptions import register_exception_handlers
from planner.core.security import decode_token, is_token_revoked
from planner.core.logging import logger
from fastapi.middleware.cors import CORSMiddleware
from planner.middleware.security_headers import SecurityHeadersMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

app = FastAPI(title="Social Planner")

# The auth routes are decorated with this limiter instance
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router.router)
api_router.include_router(events_router.router)
api_router.include_router(attendees_router.router)
api_router.include_router(photos_router.router)
api_router.include_router(users_router.router)
api_router.include_router(users_router.me_router)
api_router.include_router(friends_router.router)
api_router.include_router(notifications_router.router)
api_router.include_router(health_router.router)

app.include_router(api_router)


@app.on_event("startup")
async def on_startup():
    # Alembic owns the schema in production; create_all keeps local runs simple
    if settings.ENVIRONMENT != "production":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    # A dedicated worker process can run the consumer instead
    asyncio.create_task(run_worker())


@app.on_event("shutdown")
async def on_shutdown():
    cache.close()
    await engine.dispose()


@app.websocket("/ws/notifications/{user_id}")
async def websocket_endpoint(websocket: WebSocket, user_id: str, token: str = Query(...)):
    """
    Push channel for a user's notifications.

    Clients authenticate with a session access token passed as a query
    parameter, e.g. ``/ws/notifications/{user_id}?token=<access token>``.
    """
    try:
        if await is_token_revoked(token):
            raise ValueError("Token has been revoked")
        payload = decode_token(token)
    except ValueError as e:
        logger.warning(f"WebSocket connection rejected for user {user_id}: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    if payload.get("type") != "access":
        logger.warning(f"WebSocket connection attempt with invalid token type for user {user_id}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    token_user_id = str(payload.get("sub"))
    if token_user_id != user_id:
        logger.warning(f"WebSocket token user {token_user_id} does not match path user {user_id}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(user_id, websocket)
    logger.info(f"WebSocket connection established for user {user_id}")
    try:
        while True:
            # clients only listen; incoming frames are ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for user {user_id}")
    finally:
        await manager.disconnect(user_id, websocket)
