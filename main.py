import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1.admin.routes import router as admin_router
from api.v1.ai.routes import router as ai_router
from api.v1.auth.routes import router as auth_router
from api.v1.billing.routes import router as billing_router
from api.v1.calendar.routes import router as calendar_router
from api.v1.compliance.routes import router as compliance_router
from api.v1.dashboard.routes import router as dashboard_router
from api.v1.events.routes import router as events_router
from api.v1.planner.routes import router as planner_router
from api.v1.resources.routes import router as resources_router
from api.v1.tasks.routes import router as tasks_router
from api.v1.workspaces.routes import router as workspaces_router
from core.config import Settings
from core.db.session import Database, init_engine
from core.exceptions import AppError
from core.logging import configure_logging
from integrations.ai import AIContentAdapter
from integrations.billing import BillingClient
from integrations.email import EmailSender
from integrations.google_calendar import GoogleCalendarClient
from integrations.outlook_calendar import OutlookCalendarClient

logger = logging.getLogger(__name__)

ROUTERS = (
    auth_router,
    workspaces_router,
    tasks_router,
    compliance_router,
    resources_router,
    events_router,
    dashboard_router,
    ai_router,
    planner_router,
    calendar_router,
    billing_router,
    admin_router,
)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def create_app(settings: Settings = None, *, ai=None, email=None, billing=None,
               google=None, outlook=None, database=None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)

    if database is None:
        database = Database(init_engine(settings.DB_URL))
    database.create_all()

    timeout = settings.HTTP_TIMEOUT_SECONDS
    app = FastAPI(title=settings.PROJECT_NAME)
    app.state.settings = settings
    app.state.database = database
    app.state.ai = ai or AIContentAdapter(settings.AI_API_KEY, settings.AI_BASE_URL, settings.AI_MODEL)
    app.state.email = email or EmailSender(
        settings.SMTP_SERVER, settings.SMTP_PORT, settings.SMTP_EMAIL, settings.SMTP_PASSWORD,
        frontend_url=settings.FRONTEND_URL, timeout=timeout,
    )
    app.state.billing = billing or BillingClient(
        settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET,
        price_cents=settings.STRIPE_PRICE_CENTS, trial_days=settings.STRIPE_TRIAL_DAYS,
        frontend_url=settings.FRONTEND_URL,
    )
    app.state.calendars = {
        "google": google or GoogleCalendarClient(
            settings.GOOGLE_CLIENT_ID, settings.GOOGLE_CLIENT_SECRET, settings.GOOGLE_REDIRECT_URI, timeout=timeout
        ),
        "outlook": outlook or OutlookCalendarClient(
            settings.OUTLOOK_CLIENT_ID, settings.OUTLOOK_CLIENT_SECRET, settings.OUTLOOK_REDIRECT_URI, timeout=timeout
        ),
    }

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"success": False, "message": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"success": False, "message": "Server error"}
        if settings.is_development:
            body["trace"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return JSONResponse(status_code=500, content=body)

    for router in ROUTERS:
        app.include_router(router, prefix="/api")

    @app.get("/")
    def root():
        return {"message": "Service is running"}

    @app.get("/api/health")
    def health():
        return {"status": "OK", "environment": settings.ENVIRONMENT}

    return app


app = create_app()
