import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flashdecks.config import settings
from flashdecks.errors import DeckError
from flashdecks.routers import cards, decks, users
from flashdecks.middleware import LoggingMiddleware

# Настройка логирования
log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
logging.basicConfig(
    level=log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)  # LoggingMiddleware already logs requests

# SQL логирование (включается через настройку)
if settings.log_sql:
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
else:
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

app = FastAPI(title="Flashcard Decks API", version="0.1.0", root_path=settings.root_path)

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DeckError)
async def deck_error_handler(request: Request, exc: DeckError):
    logger.info(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Глобальный обработчик исключений
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception: {exc.__class__.__name__}: {str(exc)}",
        exc_info=True,
        extra={"path": str(request.url), "method": request.method}
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


app.include_router(decks.router, prefix="/decks", tags=["decks"])
app.include_router(cards.router, prefix="/cards", tags=["cards"])
app.include_router(users.router, prefix="/users", tags=["users"])


@app.on_event("startup")
async def startup_event():
    logger.info("🚀 Starting Flashcard Decks API server...")
    logger.info(f"🔗 Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'configured'}")
    logger.info(f"🌐 Root path: {settings.root_path or '/'}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 Shutting down server...")


@app.get("/health")
def health():
    return {"status": "ok"}
