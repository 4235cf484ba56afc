import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import CACHE_BACKEND, CORS_ORIGINS
from app.database import Base, engine
from app.errors import TaskAccessError, Unauthenticated, ValidationError
from app.logging_setup import setup_logging
from app.models import task as _task_model, user as _user_model  # noqa: F401 (register tables)
from app.routers import auth, tasks
from app.utils.cache import build_cache

setup_logging()
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="TaskMaster MVP")

# One cache per process, created at startup and handed to each request
app.state.cache = build_cache(CACHE_BACKEND)

app.add_middleware(
	CORSMiddleware,
	allow_origins=CORS_ORIGINS,
	allow_methods=["*"],
	allow_headers=["*"],
)

# API routers
app.include_router(auth.router)
app.include_router(tasks.router)


@app.get("/health", tags=["health"])
def health():
	return {"status": "ok"}


@app.exception_handler(TaskAccessError)
async def task_access_error_handler(request, exc: TaskAccessError):
	content = {"detail": exc.message}
	headers = None
	if isinstance(exc, ValidationError):
		content.update(field=exc.field, constraint=exc.constraint)
	if isinstance(exc, Unauthenticated):
		headers = {"WWW-Authenticate": "Bearer"}
	return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request, exc: RequestValidationError):
	# Report malformed bodies as 400 with the offending field and constraint
	errors = [
		{"field": ".".join(str(p) for p in err["loc"] if p != "body") or "body", "constraint": err["msg"]}
		for err in exc.errors()
	]
	return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": errors})


# Generic error handler to return JSON errors for unexpected exceptions
@app.exception_handler(Exception)
async def generic_exception_handler(request, exc):
	# Keep HTTPException behavior
	if isinstance(exc, StarletteHTTPException):
		raise exc
	logger.exception("Unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content={"detail": "Internal server error"})
