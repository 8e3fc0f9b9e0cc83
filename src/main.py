from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from src.routers import (
    ranking_router,
    keyword_router,
    credits_router,
    billing_router,
)
from src.config.logger import setup_logging
from src.gateways.xmlriver import close_shared_client
from src.utils.exceptions import RankTrackerError
import os

setup_logging()


@asynccontextmanager
async def lifespan(application: FastAPI):
    try:
        yield
    finally:
        close_shared_client()


app = FastAPI(title="SERP Rank Tracker", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("FRONTEND_ORIGIN", "").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.exception_handler(RankTrackerError)
async def rank_tracker_error_handler(request: Request, exc: RankTrackerError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


main_router = APIRouter(prefix="/api")

main_router.include_router(ranking_router)
main_router.include_router(keyword_router)
main_router.include_router(credits_router)
main_router.include_router(billing_router)

app.include_router(main_router)

@app.get("/")
async def read_root():
    return {"message": "hello world"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
