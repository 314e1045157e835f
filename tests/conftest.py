"""
Fixtures compartidas: un Strava falso sobre httpx.MockTransport y un reloj controlable.
"""

from datetime import datetime, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from stravastats.activities import ActivityAggregator
from stravastats.auth import StravaOAuth, TokenStore
from stravastats.strava import StravaClient

# Lunes; semana ISO 43 de 2026
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_activity(activity_id: int, start_date: str = "2026-10-19T06:00:00Z", distance: float = 1000.0, **extra):
    act = {
        "id": activity_id,
        "name": f"Run {activity_id}",
        "type": "Run",
        "distance": distance,
        "moving_time": 1800,
        "start_date": start_date,
        "device_name": "Garmin Forerunner 255",
        "kudos_count": 3,
        "comment_count": 1,
    }
    act.update(extra)
    return act


def token_response(access_token: str = "access-1", refresh_token: str = "refresh-1", expires_at: int = 0, **extra):
    data = {"access_token": access_token, "refresh_token": refresh_token, "expires_at": expires_at}
    data.update(extra)
    return data


class FakeStrava:
    """
    Simula /oauth/token y /api/v3/athlete/activities.

    token_responses: cola de (status, json) que se consume en cada POST al token.
    pages: lista de páginas; si se pide una página que no existe devuelve [].
    """

    def __init__(self):
        self.token_responses = []
        self.token_requests = []
        self.pages = []
        self.activity_requests = []
        self.activities_status = 200
        # cuerpo crudo (bytes) para simular respuestas rotas
        self.activities_body = None
        self.on_token_request = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/oauth/token":
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            self.token_requests.append(form)
            if self.on_token_request:
                self.on_token_request(form)
            status, body = self.token_responses.pop(0)
            return httpx.Response(status, json=body)

        if request.url.path == "/api/v3/athlete/activities":
            self.activity_requests.append(request)
            if self.activities_status != 200:
                return httpx.Response(self.activities_status, json={"message": "boom"})
            if self.activities_body is not None:
                return httpx.Response(200, content=self.activities_body)
            page = int(request.url.params.get("page", "1"))
            body = self.pages[page - 1] if page <= len(self.pages) else []
            return httpx.Response(200, json=body)

        return httpx.Response(404)

    @property
    def refresh_requests(self):
        return [r for r in self.token_requests if r.get("grant_type") == "refresh_token"]


class FakeClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def fake_strava():
    return FakeStrava()


@pytest.fixture
def http(fake_strava):
    with httpx.Client(transport=httpx.MockTransport(fake_strava.handler)) as client:
        yield client


@pytest.fixture
def clock():
    return FakeClock(NOW.timestamp())


@pytest.fixture
def token_store(http, clock):
    oauth = StravaOAuth(
        client_id="12345",
        client_secret="s3cr3t",
        redirect_uri="http://localhost:8000/callback",
        http=http,
    )
    return TokenStore(oauth, clock=clock)


@pytest.fixture
def authed_store(token_store, fake_strava, clock):
    """TokenStore con un token válido durante una hora."""
    fake_strava.token_responses.append(
        (200, token_response(expires_at=int(clock.now) + 3600, athlete={"id": 987}))
    )
    token_store.exchange_code("the-code")
    return token_store


@pytest.fixture
def aggregator(authed_store, http):
    return ActivityAggregator(authed_store, StravaClient(http=http), now=lambda: NOW)
