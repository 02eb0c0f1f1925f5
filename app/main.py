# app/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.database import init_models
from app.core.exceptions import DashboardError
from app.core.logging import setup_logger
from app.routers import (
    auth, users, leaderboard, announcements, links, notifications, calendar, training, onboarding, health,
)

logger = setup_logger("app")

app = FastAPI(title="Sales Rep Dashboard API", version="1.0")

# Include Routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(leaderboard.router)
app.include_router(announcements.router)
app.include_router(links.router)
app.include_router(notifications.router)
app.include_router(calendar.router)
app.include_router(training.router)
app.include_router(onboarding.router)


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra})


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "path": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return error_response(400, "Validation error", errors=errors)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "Internal server error")


# Create DB Tables (for development; deployments run the Alembic migrations)
@app.on_event("startup")
async def startup_event():
    await init_models(logger)


@app.get("/")
def read_root():
    return {"success": True, "data": {"message": "Welcome to the Sales Rep Dashboard API"}}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
