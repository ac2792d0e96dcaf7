import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


load_dotenv()


def _split_env(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables.

    Provides validated access to the Supabase auth settings, the outbound
    API and the session cookie.
    """

    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:3001")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")

    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "portal_session")
    SESSION_COOKIE_SECURE: bool = os.getenv("SESSION_COOKIE_SECURE", "true").lower() in ("1", "true", "yes")

    SIGN_IN_PATH: str = os.getenv("SIGN_IN_PATH", "/auth/sign-in")
    SIGN_UP_PATH: str = os.getenv("SIGN_UP_PATH", "/auth/sign-up")
    LANDING_PATH: str = os.getenv("LANDING_PATH", "/apps")

    @staticmethod
    def allowed_origins(extra_origins: List[str] | None = None) -> List[str]:
        merged = _split_env("CORS_ALLOWED_ORIGINS", "http://localhost:3000")
        if extra_origins:
            merged.extend(extra_origins)
        # Deduplicate while preserving order
        seen = set()
        result: List[str] = []
        for origin in merged:
            if origin not in seen:
                seen.add(origin)
                result.append(origin)
        return result

    @staticmethod
    def protected_prefixes() -> List[str]:
        return _split_env("PROTECTED_PREFIXES", "/apps,/dashboard")

    @staticmethod
    def locales() -> List[str]:
        return _split_env("LOCALES", "en,th")

    @classmethod
    def validate(cls) -> None:
        if not cls.SUPABASE_URL:
            raise ValueError("SUPABASE_URL environment variable is required")
        if not cls.SUPABASE_ANON_KEY:
            raise ValueError("SUPABASE_ANON_KEY environment variable is required")


@dataclass(frozen=True)
class RouteConfig:
    """Paths the route guard matches against."""

    sign_in_path: str = "/auth/sign-in"
    sign_up_path: str = "/auth/sign-up"
    landing_path: str = "/apps"
    protected_prefixes: tuple = ("/apps", "/dashboard")
    locales: tuple = ("en", "th")
    passthrough_prefixes: tuple = ("/api", "/_next", "/static")

    @classmethod
    def from_env(cls) -> "RouteConfig":
        return cls(
            sign_in_path=Config.SIGN_IN_PATH,
            sign_up_path=Config.SIGN_UP_PATH,
            landing_path=Config.LANDING_PATH,
            protected_prefixes=tuple(Config.protected_prefixes()),
            locales=tuple(Config.locales()),
        )
