import logging
import threading
import time
from typing import Callable, Dict, Optional
from urllib.parse import urlencode

import httpx

from . import config
from .errors import AuthExchangeError, NotAuthenticatedError, TokenRefreshError
from .models import Credential

logger = logging.getLogger(__name__)

# Lo que puede salir mal al hablar con /oauth/token: red, status != 2xx,
# JSON inválido o campos que faltan.
_TOKEN_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError)


class StravaOAuth:
    """Cliente del endpoint OAuth de Strava (authorize + token)."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.client_id = client_id if client_id is not None else config.STRAVA_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else config.STRAVA_CLIENT_SECRET
        self.redirect_uri = redirect_uri if redirect_uri is not None else config.STRAVA_REDIRECT_URI
        self._http = http or httpx.Client(timeout=config.HTTP_TIMEOUT_S)

    def get_authorization_url(self) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "approval_prompt": "auto",
            "scope": ",".join(config.STRAVA_SCOPES),
        }
        return f"{config.STRAVA_AUTH}/authorize?{urlencode(params)}"

    def _post_token(self, payload: Dict[str, str]) -> dict:
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            **payload,
        }
        res = self._http.post(f"{config.STRAVA_AUTH}/token", data=data)
        # Si el refresh falla, Strava devuelve 400 invalid_grant
        res.raise_for_status()
        return res.json()

    def exchange_code(self, code: str) -> dict:
        return self._post_token({"code": code, "grant_type": "authorization_code"})

    def refresh_token(self, refresh_token: str) -> dict:
        return self._post_token({"refresh_token": refresh_token, "grant_type": "refresh_token"})

    def close(self) -> None:
        self._http.close()


class TokenStore:
    """
    Guarda la única credencial del proceso y entrega siempre un access token válido.

    La credencial es inmutable y se sustituye entera, así nadie ve un token
    nuevo con un expires_at viejo. El refresh se hace con el lock cogido: si
    varios hilos llegan con el token caducado solo uno llama a Strava y el
    resto se encuentra el token ya renovado.
    """

    def __init__(self, oauth: Optional[StravaOAuth] = None, clock: Callable[[], float] = time.time):
        self.oauth = oauth or StravaOAuth()
        self._clock = clock
        self._credential: Optional[Credential] = None
        self._lock = threading.Lock()

    def get_authorization_url(self) -> str:
        return self.oauth.get_authorization_url()

    def is_authenticated(self) -> bool:
        # la caducidad se mira en get_valid_token, no aquí
        return self._credential is not None

    def exchange_code(self, code: str) -> Credential:
        try:
            data = self.oauth.exchange_code(code)
            cred = Credential.from_token_response(data)
        except _TOKEN_ERRORS as exc:
            logger.error("Strava token exchange failed: %s", exc)
            raise AuthExchangeError(f"Token exchange failed: {exc}") from exc

        with self._lock:
            self._credential = cred
        logger.info("Strava token stored (athlete_id=%s, expires_at=%s)", cred.athlete_id, cred.expires_at)
        return cred

    def get_valid_token(self) -> str:
        cred = self._credential
        if cred is None:
            raise NotAuthenticatedError("Not authenticated: visit /auth to connect Strava")
        if not cred.is_expired(self._clock()):
            return cred.access_token

        with self._lock:
            # otro hilo pudo refrescar mientras esperábamos el lock
            cred = self._credential
            if not cred.is_expired(self._clock()):
                return cred.access_token
            return self._refresh(cred).access_token

    def _refresh(self, cred: Credential) -> Credential:
        logger.info("Access token expired at %s, refreshing", cred.expires_at)
        try:
            data = self.oauth.refresh_token(cred.refresh_token)
            new_cred = Credential.from_token_response(data, previous=cred)
        except _TOKEN_ERRORS as exc:
            logger.error("Strava token refresh failed: %s", exc)
            raise TokenRefreshError(f"Token refresh failed: {exc}") from exc
        self._credential = new_cred
        return new_cred
