import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from credittalk_auth.config import settings
from credittalk_auth.database import init_db
from credittalk_auth.errors import ServiceError
from credittalk_auth.routers import auth, health, users

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
LOGGER = logging.getLogger(__name__)

app = FastAPI(title="CreditTalk signup functions")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

app.include_router(health.router, prefix="/api")
app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(auth.router)  # Function-style paths without /api.
app.include_router(users.router)
app.include_router(health.router)


@app.exception_handler(ServiceError)
def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        LOGGER.info(
            "%s %s rejected (%s): %s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"error": detail}
    )


@app.on_event("startup")
def startup() -> None:
    init_db()


@app.get("/")
def root():
    return {"status": "Signup functions running"}
