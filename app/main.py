from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from app.core.logging import configure_logging
from app.api.telemetry import router as api_router
from app.dependencies import get_runner

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    runner = get_runner()
    if settings.autostart:
        await runner.start()
    yield
    await runner.stop()
    if runner.scheduler.feed is not None:
        await runner.scheduler.feed.close()

app = FastAPI(
    title=settings.service_name,
    lifespan=lifespan
)

# CORS middleware - allow the dashboard frontend to call API
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/v1")

@app.get("/health")
async def health():
    return {"status": "ok", "service": settings.service_name}
