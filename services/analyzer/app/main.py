import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import analyze
from .settings import settings


def setup_logging():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        stream=sys.stdout,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


setup_logging()

app = FastAPI(title="Performance Analyzer Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyze.router)


@app.get("/healthz")
def health():
    return {"ok": True, "service": "analyzer"}


def serve():
    import uvicorn
    print(f"[analyzer] listening on {settings.ANALYZER_HOST}:{settings.ANALYZER_PORT} "
          f"(default: {settings.DEFAULT_PROVIDER}/{settings.DEFAULT_MODEL})")
    uvicorn.run(app, host=settings.ANALYZER_HOST, port=settings.ANALYZER_PORT)


if __name__ == "__main__":
    serve()
