from contextlib import asynccontextmanager

from fastapi import FastAPI

from watchtracker.api import changes
from watchtracker.core.database import init_db
from watchtracker.utils import logger as _logging_setup  # noqa: F401  configures the watchtracker logger



@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield


app = FastAPI(title="watchtracker API", version="1.0.0", lifespan=lifespan)

app.include_router(changes.router, prefix="/api/changes", tags=["Changes"])


@app.get("/health")
async def health():
    return {"status": "ok"}
