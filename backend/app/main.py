import logging
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import AppError
from app.core.settings import settings, validate_settings
from app.db.session import SessionLocal, engine
from app.models import Base
from app.routers.accounts import router as accounts_router
from app.routers.appointments import router as appointments_router
from app.routers.audit import router as audit_router
from app.routers.auth import router as auth_router
from app.routers.availability import router as availability_router
from app.routers.consents import router as consent_forms_router
from app.routers.consents import signed_router as patient_consents_router
from app.routers.contact_requests import router as contact_requests_router
from app.routers.message_templates import router as message_templates_router
from app.routers.messages import router as messages_router
from app.routers.my import router as my_router
from app.routers.patients import router as patients_router
from app.services.sessions import DatabaseSessionStore, SessionManager

app = FastAPI(title="PsiConnect API", version="0.1.0")
logger = logging.getLogger("psiconnect.startup")

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    payload = {"message": "Invalid input"}
    if errors:
        first = errors[0]
        payload["message"] = first.get("msg") or payload["message"]
        loc = [part for part in first.get("loc", ()) if part not in {"body", "query", "path", "header"}]
        if loc:
            payload["field"] = str(loc[-1])
    return JSONResponse(status_code=400, content=payload)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = request.headers.get("x-request-id")
    logger.exception("Unhandled server error", extra={"request_id": request_id})
    payload = {"message": "Internal server error"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


@app.on_event("startup")
def startup():
    validate_settings(settings)
    Base.metadata.create_all(bind=engine)

    if getattr(app.state, "session_manager", None) is None:
        app.state.session_manager = SessionManager(
            DatabaseSessionStore(SessionLocal),
            max_age=timedelta(days=settings.session_max_age_days),
        )
    purged = app.state.session_manager.purge_expired()
    if purged:
        logger.info("Purged %s expired sessions.", purged)
    logger.info("PsiConnect API started (env=%s).", settings.app_env)


@app.on_event("shutdown")
def shutdown():
    manager = getattr(app.state, "session_manager", None)
    if manager is not None:
        manager.close()
    logger.info("PsiConnect API stopped.")


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(accounts_router)
app.include_router(my_router)
app.include_router(patients_router)
app.include_router(appointments_router)
app.include_router(consent_forms_router)
app.include_router(patient_consents_router)
app.include_router(messages_router)
app.include_router(message_templates_router)
app.include_router(availability_router)
app.include_router(contact_requests_router)
app.include_router(audit_router)
