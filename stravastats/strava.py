import logging
from typing import Any, Dict, List, Optional

import httpx

from . import config
from .errors import UpstreamError

logger = logging.getLogger(__name__)


class StravaClient:
    """Transporte mínimo contra la API v3 de Strava."""

    def __init__(self, http: Optional[httpx.Client] = None, base_url: str = config.STRAVA_API):
        self.base_url = base_url.rstrip("/")
        self._http = http or httpx.Client(timeout=config.HTTP_TIMEOUT_S)

    def list_athlete_activities(
        self,
        access_token: str,
        page: int = 1,
        per_page: int = 100,
        after: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Una página de /athlete/activities (más reciente primero), tal cual la devuelve Strava."""
        params = {"page": page, "per_page": per_page}
        if after is not None:
            params["after"] = after
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            r = self._http.get(f"{self.base_url}/athlete/activities", params=params, headers=headers)
            r.raise_for_status()
            items = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Strava activities request failed (page=%s): %s", page, exc)
            raise UpstreamError(f"Strava activities request failed: {exc}") from exc

        if not isinstance(items, list):
            raise UpstreamError(f"Unexpected activities payload: {type(items).__name__}")
        return items

    def close(self) -> None:
        self._http.close()
