import os
from dotenv import load_dotenv

load_dotenv()

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_DB_URL = "sqlite:///./aurora.db"


def database_url() -> str:
    """Connection URL alone, for tools that do not need the full settings."""
    return os.getenv("DB_URL", DEFAULT_DB_URL)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME = "Aurora Tasks"

    def __init__(self, **overrides):
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", "production")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        self.DB_URL = database_url()

        self.JWT_SECRET = os.getenv("JWT_SECRET")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))

        self.LEGACY_ID_ALIAS = _env_bool("LEGACY_ID_ALIAS", "true")
        self.FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
        self.HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))

        self.AI_API_KEY = os.getenv("AI_API_KEY") or os.getenv("GEMINI_API_KEY")
        self.AI_BASE_URL = os.getenv("AI_BASE_URL", GEMINI_OPENAI_BASE_URL)
        self.AI_MODEL = os.getenv("AI_MODEL", "gemini-2.0-flash")

        self.GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
        self.GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
        self.GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI")

        self.OUTLOOK_CLIENT_ID = os.getenv("OUTLOOK_CLIENT_ID")
        self.OUTLOOK_CLIENT_SECRET = os.getenv("OUTLOOK_CLIENT_SECRET")
        self.OUTLOOK_REDIRECT_URI = os.getenv("OUTLOOK_REDIRECT_URI")

        self.SMTP_SERVER = os.getenv("SMTP_SERVER")
        self.SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
        self.SMTP_EMAIL = os.getenv("SMTP_EMAIL")
        self.SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")

        self.STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
        self.STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
        self.STRIPE_PRICE_CENTS = int(os.getenv("STRIPE_PRICE_CENTS", "1099"))
        self.STRIPE_TRIAL_DAYS = int(os.getenv("STRIPE_TRIAL_DAYS", "30"))

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

        if not self.JWT_SECRET:
            if not self.is_development:
                raise RuntimeError("JWT_SECRET must be set outside development")
            self.JWT_SECRET = "dev-secret-change-me"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"
