import os
from dotenv import load_dotenv

load_dotenv()

STRAVA_CLIENT_ID = os.getenv("STRAVA_CLIENT_ID", "")
STRAVA_CLIENT_SECRET = os.getenv("STRAVA_CLIENT_SECRET", "")
# Debe coincidir con el "Authorization Callback Domain" de la app en Strava
STRAVA_REDIRECT_URI = os.getenv("STRAVA_REDIRECT_URI", "http://localhost:8000/callback")

# Con activity:read_all también vemos las actividades privadas
STRAVA_SCOPES = os.getenv("STRAVA_SCOPES", "activity:read_all").split(",")

STRAVA_API = "https://www.strava.com/api/v3"
STRAVA_AUTH = "https://www.strava.com/oauth"

HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "30"))

# Paginación de /athlete/activities (200 es el máximo que acepta Strava)
ACTIVITIES_PAGE_SIZE = int(os.getenv("ACTIVITIES_PAGE_SIZE", "200"))
MAX_PAGES = int(os.getenv("MAX_PAGES", "50"))
FETCH_TIMEOUT_S = float(os.getenv("FETCH_TIMEOUT_S", "120"))

# Definición de semana: 0=lunes ... 6=domingo. Lunes + 4 días mínimos = semanas ISO
WEEK_FIRST_DAY = int(os.getenv("WEEK_FIRST_DAY", "0"))
WEEK_MIN_DAYS = int(os.getenv("WEEK_MIN_DAYS", "4"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
