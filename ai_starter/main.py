from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from ai_starter.api.responses import error_response
from ai_starter.api.routes import router
from ai_starter.core.auth import auth_middleware
from ai_starter.db.session import init_db
import ai_starter.tasks.example
import ai_starter.tasks.summarize


app = FastAPI(title="AI Starter API", version="0.1.0")
app.middleware("http")(auth_middleware)
app.include_router(router, prefix="/v1")

@app.exception_handler(StarletteHTTPException)
async def on_http_exception(request: Request, exc: StarletteHTTPException):
    return error_response(exc)

@app.exception_handler(RequestValidationError)
async def on_request_validation_error(request: Request, exc: RequestValidationError):
    return error_response(exc)

@app.on_event("startup")
async def on_startup():
    await init_db()
