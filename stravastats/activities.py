import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from . import config
from .auth import TokenStore
from .errors import UpstreamError
from .models import ActivityRecord, WeeklyStatsResult
from .stats import build_weekly_stats
from .strava import StravaClient

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class ActivityAggregator:
    """
    Listado de actividades y estadísticas semanales sobre la API de Strava.

    Pide el token a TokenStore en cada operación: si ha caducado se refresca
    allí, aquí no se guarda ningún token.
    """

    def __init__(
        self,
        tokens: TokenStore,
        client: Optional[StravaClient] = None,
        now: Callable[[], datetime] = _utcnow,
        page_size: int = config.ACTIVITIES_PAGE_SIZE,
        max_pages: int = config.MAX_PAGES,
        fetch_timeout_s: float = config.FETCH_TIMEOUT_S,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.tokens = tokens
        self.client = client or StravaClient()
        self._now = now
        self.page_size = page_size
        self.max_pages = max_pages
        self.fetch_timeout_s = fetch_timeout_s
        self._monotonic = monotonic

    # ---------- listado ----------
    def list_activities(self, per_page: int = 10, page: int = 1) -> List[ActivityRecord]:
        if per_page < 1 or page < 1:
            raise ValueError("per_page y page deben ser >= 1")

        access_token = self.tokens.get_valid_token()
        items = self.client.list_athlete_activities(access_token, page=page, per_page=per_page)
        try:
            return [ActivityRecord.from_strava(act) for act in items]
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            raise UpstreamError(f"Malformed activity in Strava response: {exc}") from exc

    # ---------- estadísticas ----------
    def weekly_stats(self, number_of_weeks: int = 12) -> WeeklyStatsResult:
        if number_of_weeks < 1:
            raise ValueError("number_of_weeks debe ser >= 1")

        now = self._now()
        after_epoch = int((now - timedelta(days=number_of_weeks * 7)).timestamp())

        access_token = self.tokens.get_valid_token()
        activities = self.fetch_activities_since(access_token, after_epoch)
        try:
            result = build_weekly_stats(activities, number_of_weeks, today=now.astimezone(timezone.utc).date())
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            raise UpstreamError(f"Malformed activity in Strava response: {exc}") from exc

        logger.info(
            "Weekly stats: %s weeks, %s activities fetched, %s counted",
            number_of_weeks, len(activities), result.summary.total_activities,
        )
        return result

    def fetch_activities_since(self, access_token: str, after_epoch: int) -> List[Dict[str, Any]]:
        """
        Todas las actividades con inicio >= after_epoch.

        Pide páginas de una en una hasta recibir una incompleta (o vacía).
        Si se pasa de max_pages o de fetch_timeout_s lanza UpstreamError en
        vez de devolver un resultado a medias.
        """
        accumulated: List[Dict[str, Any]] = []
        deadline = self._monotonic() + self.fetch_timeout_s
        page = 1
        while True:
            if page > self.max_pages:
                raise UpstreamError(f"Too many activity pages (> {self.max_pages})")
            if self._monotonic() > deadline:
                raise UpstreamError(f"Activity fetch exceeded {self.fetch_timeout_s}s")

            items = self.client.list_athlete_activities(
                access_token, page=page, per_page=self.page_size, after=after_epoch,
            )
            accumulated.extend(items)
            logger.debug("Fetched page %s: %s activities", page, len(items))
            if len(items) < self.page_size:
                break
            page += 1
        return accumulated
