from pydantic import BaseModel
import os

class Settings(BaseModel):
    database_url: str = os.getenv("DATABASE_URL", "")
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")
    jwt_expires_min: int = int(os.getenv("JWT_EXPIRES_MIN", "1440"))
    line_channel_id: str = os.getenv("LINE_CHANNEL_ID", "")
    line_channel_secret: str = os.getenv("LINE_CHANNEL_SECRET", "")
    line_redirect_uri: str = os.getenv("LINE_REDIRECT_URI", "http://localhost:3000/auth/line/callback")
    line_http_timeout: float = float(os.getenv("LINE_HTTP_TIMEOUT", "10"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    cors_origins: list[str] = [
        o.strip()
        for o in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if o.strip()
    ]

settings = Settings()
