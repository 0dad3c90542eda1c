"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- La base URL del backend y la anon key se inyectan una sola vez al arrancar,
  así el cliente se puede probar contra un endpoint simulado.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "casewhr"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "casewhr"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "casewhr"
    return Path.home() / ".config" / "casewhr"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# casewhr client config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central del cliente.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="CASEWHR_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="",
        description="Base URL de las funciones del backend (sin '/' final).",
    )
    public_anon_key: str = Field(
        default="",
        description="Clave pública anónima; pasa el gate genérico de auth del backend.",
    )

    http_timeout_seconds: float = Field(
        default=45.0,
        gt=0,
        description="Tope duro por intento (segundos).",
    )
    http_max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Reintentos máximos ante fallos transitorios (red, timeout, 5xx).",
    )
    retry_backoff_seconds: float = Field(
        default=1.5,
        ge=0,
        description="Backoff incremental: espera = valor * número de intento.",
    )

    dev_mode_enabled: bool = Field(
        default=False,
        description="Habilita el canal X-Dev-Token. Desactivado en builds de producción.",
    )
    dev_token_prefix: str = Field(
        default="dev-user-",
        min_length=1,
        description="Prefijo que identifica credenciales sintéticas de desarrollo.",
    )

    login_redirect_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Gracia visible antes de forzar el re-login tras una sesión expirada.",
    )
    user_agent: str = Field(
        default="casewhr-client/0.1",
        min_length=1,
        description="User-Agent para las peticiones al backend.",
    )

    def endpoint_url(self, endpoint: str) -> str:
        return f"{self.api_base_url.rstrip('/')}{endpoint}"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_base_url.strip()) and bool(self.public_anon_key.strip())
