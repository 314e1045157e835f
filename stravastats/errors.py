class StravaError(Exception):
    """Error base de la integración con Strava."""


class NotAuthenticatedError(StravaError):
    """Todavía no se ha guardado ningún token: hay que pasar por /auth."""


class AuthExchangeError(StravaError):
    """Falló el intercambio code -> token contra /oauth/token."""


class TokenRefreshError(StravaError):
    """Falló el refresh del access token."""


class UpstreamError(StravaError):
    """Falló la llamada a la API de actividades (ya con token válido)."""
