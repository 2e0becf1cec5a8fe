from app.core.config import settings

def get_dialer_base_url() -> str:
    return settings.AI_DIALER_URL.rstrip("/")

def get_httpx_headers():
    headers = {"Content-Type": "application/json"}
    if settings.AI_DIALER_API_KEY:
        headers["Authorization"] = settings.AI_DIALER_API_KEY
    return headers
