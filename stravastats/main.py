from contextlib import asynccontextmanager
import logging
import sys
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from . import config
from .activities import ActivityAggregator
from .auth import TokenStore
from .errors import NotAuthenticatedError, StravaError

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

if not (config.STRAVA_CLIENT_ID and config.STRAVA_CLIENT_SECRET):
    logger.warning("Faltan STRAVA_CLIENT_ID o STRAVA_CLIENT_SECRET en variables de entorno")

# Un único atleta por proceso; el token vive en memoria
_token_store = TokenStore()
_aggregator = ActivityAggregator(_token_store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # los clientes httpx viven lo que vive la app
    _token_store.oauth.close()
    _aggregator.client.close()
    logger.info("Clientes HTTP de Strava cerrados")


app = FastAPI(title="strava-weekly-stats", lifespan=lifespan)


# ---------- dependencias ----------
def get_token_store() -> TokenStore:
    return _token_store


def get_aggregator() -> ActivityAggregator:
    return _aggregator


# ---------- errores ----------
@app.exception_handler(StravaError)
async def strava_error_handler(request: Request, exc: StravaError):
    if isinstance(exc, NotAuthenticatedError):
        return JSONResponse(
            status_code=401,
            content={"status": "error", "message": "No autenticado. Ve a /auth para conectar Strava."},
        )
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=502, content={"status": "error", "message": str(exc)})


# ---------- OAuth ----------
@app.get("/auth")
def authenticate(tokens: TokenStore = Depends(get_token_store)):
    if not tokens.oauth.client_id:
        raise HTTPException(status_code=503, detail="Falta STRAVA_CLIENT_ID")
    return {
        "message": "Abre este enlace para autorizar el acceso a Strava",
        "auth_url": tokens.get_authorization_url(),
    }


@app.get("/callback")
def callback(
    code: Optional[str] = None,
    error: Optional[str] = None,
    tokens: TokenStore = Depends(get_token_store),
):
    if error:
        raise HTTPException(status_code=400, detail=f"Strava devolvió error: {error}")
    if not code:
        raise HTTPException(status_code=400, detail="Falta 'code' en el callback")

    cred = tokens.exchange_code(code)
    return {
        "status": "success",
        "message": "Autorización correcta. Ya puedes consultar tus actividades.",
        "athlete_id": cred.athlete_id,
    }


# ---------- Consultas ----------
@app.get("/activities")
def list_activities(
    per_page: int = Query(10, ge=1, le=200),
    page: int = Query(1, ge=1),
    aggregator: ActivityAggregator = Depends(get_aggregator),
):
    activities = aggregator.list_activities(per_page=per_page, page=page)
    return {
        "activities": [a.to_dict() for a in activities],
        "count": len(activities),
        "page": page,
        "per_page": per_page,
    }


@app.get("/stats/weekly")
def weekly_stats(
    weeks: int = Query(12, ge=1, le=520),
    aggregator: ActivityAggregator = Depends(get_aggregator),
):
    return aggregator.weekly_stats(weeks).to_dict()


@app.get("/health")
def health(tokens: TokenStore = Depends(get_token_store)):
    return {"status": "ok", "authenticated": tokens.is_authenticated(), "service": "strava-api"}
