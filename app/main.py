import asyncio
import logging
import requests
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.rate_limit import limiter
from app.database.supabase_client import SupabaseClients
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.events import routes as events_routes
from app.modules.invites import routes as invites_routes
from app.modules.bring_items import routes as bring_items_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.groups import routes as groups_routes
from app.modules.templates import routes as templates_routes
from app.modules.realtime import routes as realtime_routes
from app.modules.realtime.manager import RealtimeManager
from app.modules.notifications.push import PushClient
from app.modules.notifications.sweep import NotificationSweeper, notification_sweep_loop

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup")
    app.state.http_session = requests.Session()
    sweep_task = None
    if settings.supabase_url and settings.supabase_key:
        app.state.supabase = SupabaseClients.from_settings(settings)
        if settings.notification_sweep_enabled:
            sweeper = NotificationSweeper(app.state.supabase.service, PushClient(session=app.state.http_session))
            sweep_task = asyncio.create_task(
                notification_sweep_loop(sweeper, settings.notification_sweep_interval_sec)
            )
            logger.info(f"Notification sweep started - every {settings.notification_sweep_interval_sec}s")
    else:
        logger.warning("SUPABASE_URL / SUPABASE_KEY not set; data routes will return 503")
    yield
    if sweep_task:
        sweep_task.cancel()
    app.state.http_session.close()
    app.state.http_session = None
    logger.info("Application shutdown")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
    lifespan=lifespan,
)
app.state.supabase = None
app.state.http_session = None
app.state.realtime = RealtimeManager()
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"Referrer-Policy", b"no-referrer"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")
app.include_router(events_routes.router, prefix="/api/v1")
app.include_router(invites_routes.router, prefix="/api/v1")
app.include_router(bring_items_routes.router, prefix="/api/v1")
app.include_router(notifications_routes.router, prefix="/api/v1")
app.include_router(groups_routes.router, prefix="/api/v1")
app.include_router(templates_routes.router, prefix="/api/v1")
app.include_router(realtime_routes.router)


@app.get("/")
async def root():
    return {"message": "Welcome to dinner-bell-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready(request: Request):
    """Readiness probe: ready once the Supabase clients exist."""
    if request.app.state.supabase is None:
        return JSONResponse(status_code=503, content={"status": "not configured"})
    return {"status": "ready"}
