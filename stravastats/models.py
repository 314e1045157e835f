from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Credential:
    access_token: str
    refresh_token: str
    expires_at: int  # epoch seconds
    scope: str = ""
    athlete_id: Optional[int] = None

    @classmethod
    def from_token_response(cls, data: Dict[str, Any], previous: Optional["Credential"] = None) -> "Credential":
        """Construye la credencial desde la respuesta de /oauth/token.

        Lanza KeyError/ValueError/TypeError si la respuesta viene malformada.
        """
        scope = data.get("scope")
        if isinstance(scope, list):
            scope = ",".join(scope)
        athlete_id = (data.get("athlete") or {}).get("id")
        return cls(
            access_token=str(data["access_token"]),
            refresh_token=str(data["refresh_token"]),
            expires_at=int(data["expires_at"]),
            # el refresh no devuelve scope ni athlete: se conservan los anteriores
            scope=scope or (previous.scope if previous else ""),
            athlete_id=int(athlete_id) if athlete_id is not None else (previous.athlete_id if previous else None),
        )

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class ActivityRecord:
    id: int
    name: str
    type: str
    distance_km: float
    moving_time_minutes: int
    start_date: date
    device_name: Optional[str] = None
    kudos_count: int = 0
    comment_count: int = 0
    average_speed_kmh: Optional[float] = None
    elevation_gain_m: Optional[float] = None

    @classmethod
    def from_strava(cls, act: Dict[str, Any]) -> "ActivityRecord":
        """Proyección normalizada de una actividad cruda de /athlete/activities."""
        average_speed = act.get("average_speed")
        elev_m = act.get("total_elevation_gain")
        return cls(
            id=int(act["id"]),
            name=str(act["name"]),
            type=str(act["type"]),
            distance_km=float(act["distance"]) / 1000.0,
            moving_time_minutes=int(act["moving_time"]) // 60,
            start_date=activity_date(act),
            device_name=act.get("device_name"),
            kudos_count=int(act.get("kudos_count") or 0),
            comment_count=int(act.get("comment_count") or 0),
            average_speed_kmh=float(average_speed) * 3.6 if average_speed is not None else None,
            elevation_gain_m=float(elev_m) if elev_m is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "distance_km": self.distance_km,
            "moving_time_minutes": self.moving_time_minutes,
            "start_date": self.start_date.isoformat(),
            "kudos_count": self.kudos_count,
            "comment_count": self.comment_count,
        }
        # opcionales: solo si Strava los trae
        if self.device_name is not None:
            out["device_name"] = self.device_name
        if self.average_speed_kmh is not None:
            out["average_speed_kmh"] = self.average_speed_kmh
        if self.elevation_gain_m is not None:
            out["elevation_gain_m"] = self.elevation_gain_m
        return out


def activity_date(act: Dict[str, Any]) -> date:
    """Fecha (UTC) de inicio de una actividad cruda: 'YYYY-MM-DDTHH:MM:SSZ' -> date."""
    return date.fromisoformat(str(act["start_date"])[:10])


@dataclass
class WeekBucket:
    week_start: date
    total_distance_km: float = 0.0
    activity_count: int = 0

    @property
    def week_end(self) -> date:
        return self.week_start + timedelta(days=6)

    def add(self, distance_km: float) -> None:
        self.total_distance_km += distance_km
        self.activity_count += 1


@dataclass(frozen=True)
class WeekSummary:
    week_start: date
    week_end: date
    week_number: int
    year: int
    distance_km: float
    activity_count: int
    is_current_week: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "week_number": self.week_number,
            "year": self.year,
            "distance_km": self.distance_km,
            "activity_count": self.activity_count,
            "is_current_week": self.is_current_week,
        }


@dataclass(frozen=True)
class StatsSummary:
    total_distance_km: float
    total_activities: int
    average_distance_per_week_km: float
    number_of_weeks: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_distance_km": self.total_distance_km,
            "total_activities": self.total_activities,
            "average_distance_per_week_km": self.average_distance_per_week_km,
            "number_of_weeks": self.number_of_weeks,
        }


@dataclass(frozen=True)
class WeeklyStatsResult:
    summary: StatsSummary
    weeks: List[WeekSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weeks": [w.to_dict() for w in self.weeks],
            "summary": self.summary.to_dict(),
        }
