import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException
from app.config import COOKIE_NAME, COOKIE_SECURE, CORS_ORIGINS, LOG_LEVEL
from app.database import Base, engine
from app.errors import ServiceError, UnauthenticatedError
from app.routers import auth, tasks

# Configure logging
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Taskboard API")

# Session cookies only travel cross-origin when credentials are allowed
app.add_middleware(
	CORSMiddleware,
	allow_origins=CORS_ORIGINS,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

# API routers
app.include_router(auth.router)
app.include_router(tasks.router)


@app.get("/health")
def health():
	return {"status": "ok"}


def _clear_rejected_cookie(request: Request, response: JSONResponse, rejected: bool = False):
	# a credential rejected while serving the request is dropped from the client as well
	if COOKIE_NAME in request.cookies and (rejected or getattr(request.state, "stale_session", False)):
		response.delete_cookie(COOKIE_NAME, httponly=True, secure=COOKIE_SECURE, samesite="strict")
	return response


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
	response = JSONResponse(status_code=exc.status_code, content={"error": exc.message})
	return _clear_rejected_cookie(request, response, rejected=isinstance(exc, UnauthenticatedError))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
	response = JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
	return _clear_rejected_cookie(request, response)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
	fields = []
	for err in exc.errors():
		if err.get("type") == "json_invalid":
			# loc holds the byte offset of the decode error, not a field
			field = "body"
		else:
			field = ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "body"
		fields.append({"field": field, "message": err.get("msg", "invalid")})
	names = ", ".join(dict.fromkeys(f["field"] for f in fields))
	return JSONResponse(status_code=422, content={"error": f"Invalid fields: {names}", "fields": fields})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
	logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
	return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Generic error handler to return JSON errors for unexpected exceptions
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
	logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
	return JSONResponse(status_code=500, content={"error": "Internal server error"})
