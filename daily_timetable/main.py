from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from daily_timetable.api.routes_timetable import router as timetable_router
from daily_timetable.core.config import settings
from daily_timetable.core.logging_config import setup_logging

setup_logging(settings.LOG_LEVEL)

app = FastAPI(title="Daily Timetable Service")

app.include_router(timetable_router)


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    # malformed bodies, unknown fields and bad types are all invalid input
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.get("/health")
def health_check():
    return {"status": "ok"}
