"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, read-only
for every request, no string-key dict lookups at runtime.

``load_config()`` builds one from ``appsettings.cfg`` files::

    # appsettings.cfg
    HOST = 0.0.0.0
    PORT = 8080
    static.dir = ./public

    # appsettings.production.cfg (read after the file above)
    allowed.origins = https://example.com; https://admin.example.com
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from trellis.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 5000
    debug: bool = False
    deployment_mode: str = "development"

    # Static files
    static_dir: str | Path | None = None
    static_url: str = "/static"

    # CORS
    allowed_origins: tuple[str, ...] = ()

    @property
    def is_production(self) -> bool:
        return self.deployment_mode.lower() == "production"


def parse_config_file(path: Path) -> dict[str, str]:
    """Read ``key = value`` lines, skipping blanks and ``#`` comments.

    Parsed with python-dotenv; ``${VAR}`` references are left as written.
    """
    values: dict[str, str] = {}
    for key, value in dotenv_values(path, interpolate=False, encoding="utf-8").items():
        if value is None:
            msg = f"{path}: expected 'key = value', got bare key {key!r}"
            raise ConfigurationError(msg)
        values[key] = value
    return values


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    msg = f"{key}: expected a boolean, got {value!r}"
    raise ConfigurationError(msg)


def load_config(
    directory: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Build an ``AppConfig`` from ``appsettings*.cfg`` in *directory*.

    Reads ``appsettings.cfg`` then ``appsettings.<mode>.cfg``, where the
    mode comes from ``DEPLOYMENT_MODE`` (default ``development``). Keys
    in the later file override the earlier one. Missing files are
    skipped; missing keys keep the ``AppConfig`` defaults.

    Raises ``ConfigurationError`` for malformed lines or values.
    """
    env = os.environ if environ is None else environ
    base = Path(directory) if directory is not None else Path.cwd()
    mode = env.get("DEPLOYMENT_MODE", "development")

    values: dict[str, str] = {}
    for name in ("appsettings.cfg", f"appsettings.{mode}.cfg"):
        path = base / name
        if path.is_file():
            values.update(parse_config_file(path))

    kwargs: dict[str, object] = {"deployment_mode": mode}
    if "HOST" in values:
        kwargs["host"] = values["HOST"]
    if "PORT" in values:
        try:
            kwargs["port"] = int(values["PORT"])
        except ValueError:
            msg = f"PORT: expected an integer, got {values['PORT']!r}"
            raise ConfigurationError(msg) from None
    if "DEBUG" in values:
        kwargs["debug"] = _parse_bool("DEBUG", values["DEBUG"])
    if "static.dir" in values:
        kwargs["static_dir"] = values["static.dir"]
    if "static.url" in values:
        kwargs["static_url"] = values["static.url"]
    if "allowed.origins" in values:
        kwargs["allowed_origins"] = tuple(
            origin.strip() for origin in values["allowed.origins"].split(";") if origin.strip()
        )
    return AppConfig(**kwargs)  # type: ignore[arg-type]
