# findme/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from findme.api.v1.auth import router as auth_router
from findme.api.v1.chat import router as chat_router
from findme.api.v1.dashboard import router as dashboard_router
from findme.api.v1.profiles import router as profiles_router
from findme.api.v1.swipes import router as swipes_router
from findme.api.v1.vacancies import router as vacancies_router
from findme.core.config import settings
from findme.core.errors import PersistenceError, SessionError
from findme.db.mongo import close_db, init_db
from findme.services.realtime import reset_feed

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="FindMe API")

# Mount auth routes at the root `/auth` paths used by the redirect flow
app.include_router(auth_router)
app.include_router(profiles_router, prefix="/api/v1")
app.include_router(vacancies_router, prefix="/api/v1")
app.include_router(swipes_router, prefix="/api/v1")
app.include_router(dashboard_router, prefix="/api/v1")
app.include_router(chat_router, prefix="/api/v1")


@app.exception_handler(SessionError)
async def session_error_handler(request: Request, exc: SessionError):
    # clients sign out, drop stored tokens and go to the redirect target
    return JSONResponse(status_code=401, content=exc.to_dict())


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=500, content=exc.to_dict())


@app.exception_handler(PyMongoError)
async def mongo_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=PersistenceError("Something went wrong. Please try again.").to_dict())


@app.on_event("startup")
async def startup_event():
    await init_db()


@app.on_event("shutdown")
async def shutdown_event():
    close_db()
    reset_feed()
