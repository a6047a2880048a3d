import os
from dataclasses import dataclass

from dotenv import load_dotenv

from errors import ConfigError

ENV_FILE = os.getenv("SIGNALING_ENV_FILE", ".env")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    socket_host: str = "0.0.0.0"
    socket_port: int = 8765
    upload_host: str = "0.0.0.0"
    upload_port: int = 8000
    upload_dir: str = "uploads"
    upload_field: str = "audio"
    max_upload_mb: int = 50
    cors_origins: tuple = ("*",)
    log_level: str = "INFO"


def _int(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def load_settings(env_file=ENV_FILE) -> Settings:
    """Load settings from the environment after reading the dotenv file."""
    if env_file:
        load_dotenv(env_file)

    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        socket_host=os.getenv("SOCKET_HOST", "0.0.0.0"),
        socket_port=_int("SOCKET_PORT", 8765),
        upload_host=os.getenv("UPLOAD_HOST", "0.0.0.0"),
        upload_port=_int("UPLOAD_PORT", 8000),
        upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
        upload_field=os.getenv("UPLOAD_FIELD", "audio"),
        max_upload_mb=_int("MAX_UPLOAD_MB", 50),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
