# lithomarket/config.py
import os

from dotenv import load_dotenv
from sqlalchemy.engine.url import make_url

# Cargar .env antes de leer variables (dev local)
load_dotenv(override=False)


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # ==========================
    #  SECRET / SECURITY
    # ==========================
    SECRET_KEY = os.getenv("SECRET_KEY") or os.getenv("SESSION_SECRET", "lithomarket-dev-secret")
    SESSION_COOKIE_SAMESITE = "Lax"

    # ==========================
    #  DATABASE
    # ==========================
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///lithomarket.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # ==========================
    #  UPLOADS (máscaras)
    # ==========================
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_MB", "500")) * 1024 * 1024
    # Solo se calcula el nombre; la subida real la hace otro servicio
    MASK_STORAGE_BASE_URL = os.getenv("MASK_STORAGE_BASE_URL", "https://storage.example.com/masks")
    RESULT_STORAGE_BASE_URL = os.getenv("RESULT_STORAGE_BASE_URL", "https://storage.example.com/results")

    # ==========================
    #  "BLOCKCHAIN" (simulada)
    # ==========================
    CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "MATIC")
    JOB_PAYMENT_CONTRACT_ADDRESS = os.getenv(
        "JOB_PAYMENT_CONTRACT_ADDRESS",
        "0x0000000000000000000000000000000000000001",
    )
    # No hay lectura real de saldo on-chain
    MOCK_WALLET_BALANCE = os.getenv("MOCK_WALLET_BALANCE", "1.245")

    # ==========================
    #  WALLET AUTH
    # ==========================
    # INSEGURO: la firma NO se verifica. Solo dev/testing lo encienden.
    WALLET_AUTH_UNVERIFIED = _flag("WALLET_AUTH_UNVERIFIED", "false")
    WALLET_CHALLENGE_MAX_AGE = int(os.getenv("WALLET_CHALLENGE_MAX_AGE", "300"))

    # ==========================
    #  GOOGLE OAUTH
    # ==========================
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
    # vacío => url_for("auth.google_callback", _external=True)
    GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI", "")
    GOOGLE_AUTH_URL = os.getenv("GOOGLE_AUTH_URL", "https://accounts.google.com/o/oauth2/v2/auth")
    GOOGLE_TOKEN_URL = os.getenv("GOOGLE_TOKEN_URL", "https://oauth2.googleapis.com/token")
    GOOGLE_USERINFO_URL = os.getenv("GOOGLE_USERINFO_URL", "https://openidconnect.googleapis.com/v1/userinfo")
    GOOGLE_FAILURE_REDIRECT = os.getenv("GOOGLE_FAILURE_REDIRECT", "/login?error=google-auth")
    OAUTH_HTTP_TIMEOUT = float(os.getenv("OAUTH_HTTP_TIMEOUT", "10"))


class DevelopmentConfig(Config):
    DEBUG = True
    WALLET_AUTH_UNVERIFIED = _flag("WALLET_AUTH_UNVERIFIED", "true")


class ProductionConfig(Config):
    DEBUG = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    WALLET_AUTH_UNVERIFIED = _flag("WALLET_AUTH_UNVERIFIED", "false")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret"
    WALLET_AUTH_UNVERIFIED = True
    GOOGLE_CLIENT_ID = "test-client-id"
    GOOGLE_CLIENT_SECRET = "test-client-secret"
    GOOGLE_REDIRECT_URI = "http://localhost/api/auth/google/callback"


CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def config_for(env: str = None, default: str = "development"):
    """Clase de config para LITHOMARKET_ENV (o `env`); desconocido => `default`."""
    name = env or os.getenv("LITHOMARKET_ENV") or default
    return CONFIGS.get(name, CONFIGS[default])


def ensure_sqlite_dir(uri: str) -> None:
    """Crea la carpeta del archivo SQLite (evita "unable to open database file")."""
    url = make_url(uri)
    if url.get_backend_name() != "sqlite":
        return
    db_path = url.database
    if db_path and db_path not in (":memory:",):
        directory = os.path.dirname(db_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
