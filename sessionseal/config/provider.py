"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass, field
from typing import Literal, Optional, Protocol

from ..errors import InvalidConfiguration
from ..modules.keyring import KeyRing

SAME_SITE_VALUES = ("lax", "strict", "none")
STORE_BACKENDS = ("none", "memory", "redis")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class CookieConfig:
    """Cookie transport attributes, passed through to Set-Cookie."""
    name: str = "session"
    path: str = "/"
    domain: Optional[str] = None
    secure: bool = True
    http_only: bool = True
    same_site: Literal["lax", "strict", "none"] = "lax"

    def __post_init__(self):
        if not self.name:
            raise InvalidConfiguration("Cookie name must not be empty")
        if self.same_site not in SAME_SITE_VALUES:
            raise InvalidConfiguration(
                f"Cookie SameSite must be one of {', '.join(SAME_SITE_VALUES)}, got {self.same_site!r}"
            )


@dataclass
class SessionConfig:
    """Session behaviour configuration."""
    keyring: KeyRing
    cookie: CookieConfig = field(default_factory=CookieConfig)
    ttl: int = 86400
    confidential: bool = True
    rolling: bool = False
    save_uninitialized: bool = True
    token_header: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.keyring, KeyRing):
            raise InvalidConfiguration("SessionConfig.keyring must be a KeyRing")
        if self.ttl <= 0:
            raise InvalidConfiguration(f"Session TTL must be positive, got {self.ttl}")

    @property
    def cookie_name(self) -> str:
        return self.cookie.name


@dataclass
class StoreConfig:
    """Server-side session store configuration."""
    backend: Literal["none", "memory", "redis"] = "none"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "session:"

    @property
    def is_stateless(self) -> bool:
        """Session data travels inside the cookie."""
        return self.backend == "none"


@dataclass
class ApiConfig:
    """API server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_session_config(self) -> SessionConfig:
        """Get session configuration."""
        ...

    def get_store_config(self) -> StoreConfig:
        """Get store configuration."""
        ...

    def get_api_config(self) -> ApiConfig:
        """Get API configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_keyring(self) -> KeyRing:
        """
        Build the key ring from environment variables.

        SESSION_KEYS holds comma separated base64 keys, active first.
        Otherwise SESSION_SECRET and SESSION_SALT derive a single key.
        """
        keys_env = os.getenv("SESSION_KEYS")
        if keys_env:
            return KeyRing.from_base64(keys_env.split(","))

        secret = os.getenv("SESSION_SECRET")
        if secret:
            salt = os.getenv("SESSION_SALT")
            if not salt:
                raise InvalidConfiguration("SESSION_SALT is required when SESSION_SECRET is set")
            return KeyRing.from_secret(secret, salt)

        # No default key for security
        raise InvalidConfiguration(
            "SESSION_KEYS environment variable is required "
            "(comma separated base64 keys, active key first). "
            "Alternatively set SESSION_SECRET and SESSION_SALT."
        )

    def get_session_config(self) -> SessionConfig:
        """Get session configuration from environment variables."""
        cookie = CookieConfig(
            name=os.getenv("SESSION_COOKIE_NAME", "session"),
            path=os.getenv("SESSION_COOKIE_PATH", "/"),
            domain=os.getenv("SESSION_COOKIE_DOMAIN") or None,
            secure=_env_flag("SESSION_COOKIE_SECURE", "true"),
            http_only=_env_flag("SESSION_COOKIE_HTTPONLY", "true"),
            same_site=os.getenv("SESSION_COOKIE_SAMESITE", "lax").strip().lower(),
        )

        try:
            ttl = int(os.getenv("SESSION_TTL", "86400"))
        except ValueError as e:
            raise InvalidConfiguration("SESSION_TTL must be an integer number of seconds") from e

        return SessionConfig(
            keyring=self.get_keyring(),
            cookie=cookie,
            ttl=ttl,
            confidential=_env_flag("SESSION_CONFIDENTIAL", "true"),
            rolling=_env_flag("SESSION_ROLLING"),
            save_uninitialized=_env_flag("SESSION_SAVE_UNINITIALIZED", "true"),
            token_header=os.getenv("SESSION_TOKEN_HEADER") or None,
        )

    def get_store_config(self) -> StoreConfig:
        """Get store configuration from environment variables."""
        backend = os.getenv("SESSION_STORE", "none").strip().lower()
        if backend not in STORE_BACKENDS:
            raise InvalidConfiguration(
                f"SESSION_STORE must be one of {', '.join(STORE_BACKENDS)}, got {backend!r}"
            )

        return StoreConfig(
            backend=backend,
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            key_prefix=os.getenv("SESSION_STORE_PREFIX", "session:"),
        )

    def get_api_config(self) -> ApiConfig:
        """Get API configuration from environment variables."""
        return ApiConfig(
            host=os.getenv("API_HOST", "0.0.0.0"),
            port=int(os.getenv("API_PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
