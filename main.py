from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from config.settings import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# logs de debug des bibliothèques HTTP désactivés
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


# ✅ middlewares
from middlewares.timing import TimingMiddleware
from middlewares.error_handler import add_error_handlers

# ✅ routeurs
from routers import (
    notes, moyennes, bilan, calculations,
    class_average_configs, class_thresholds,
    exports,
)

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
)

# ✅ CORS (front React)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ mesure de latence (en-tête X-Latency-Ms)
app.add_middleware(TimingMiddleware)

# ✅ gestionnaires d'erreurs globaux (format JSON commun)
add_error_handlers(app)

# ✅ routeurs préfixés /v1
app.include_router(notes.router,                 prefix="/v1")
app.include_router(moyennes.router,              prefix="/v1")
app.include_router(bilan.router,                 prefix="/v1")
app.include_router(calculations.router,          prefix="/v1")
app.include_router(class_average_configs.router, prefix="/v1")
app.include_router(class_thresholds.router,      prefix="/v1")
app.include_router(exports.router,               prefix="/v1")


# ✅ healthcheck
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "API is running"}

# ✅ racine
@app.get("/")
def root():
    return {"message": "ScolarFlow API - notes, moyennes et bilan annuel"}
