from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "settings.yaml"

# env var -> (section, key)
_ENV_OVERRIDES = {
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "DATABASE_URL": ("database", "url"),
    "GIS_UPLOAD_ROOT": ("uploads", "root"),
    "GIS_AUTH_MODE": ("auth", "mode"),
    "GIS_ADMIN_USERNAME": ("auth", "username"),
    "GIS_ADMIN_PASSWORD": ("auth", "password"),
    "GIS_ADMIN_TOKEN": ("auth", "token"),
}


@dataclass(frozen=True)
class AppConfig:
    raw: Dict[str, Any]

    def section(self, name: str) -> Dict[str, Any]:
        s = self.raw.get(name, {}) if isinstance(self.raw, dict) else {}
        return dict(s or {})

    # --- server ---
    def host(self) -> str:
        return str(self.section("server").get("host", "0.0.0.0"))

    def port(self) -> int:
        return int(self.section("server").get("port", 5000))

    # --- database ---
    def database_url(self) -> str:
        return str(self.section("database").get("url", "sqlite:///./gis.db"))

    # --- uploads ---
    def upload_root(self) -> Path:
        return Path(str(self.section("uploads").get("root", "./public/uploads"))).resolve()

    def upload_public_prefix(self) -> str:
        prefix = str(self.section("uploads").get("public_prefix", "/uploads"))
        return "/" + prefix.strip("/")

    def max_file_bytes(self) -> int:
        return int(self.section("uploads").get("max_file_bytes", 50 * 1024 * 1024))

    def max_field_bytes(self) -> int:
        return int(self.section("uploads").get("max_field_bytes", 50 * 1024 * 1024))

    def allowed_extensions(self) -> frozenset[str]:
        exts = self.section("uploads").get("allowed_extensions") or ["jpeg", "jpg", "png", "webp"]
        return frozenset(str(e).lower().lstrip(".") for e in exts)

    def upload_categories(self) -> Dict[str, str]:
        return {str(k): str(v) for k, v in (self.section("uploads").get("categories") or {}).items()}

    def fallback_category(self) -> str:
        return str(self.section("uploads").get("fallback_category", "others"))

    # --- auth ---
    def auth_mode(self) -> str:
        return str(self.section("auth").get("mode", "off")).strip().lower()

    def admin_username(self) -> str:
        return str(self.section("auth").get("username", "admin"))

    def admin_password(self) -> str:
        return str(self.section("auth").get("password", ""))

    def admin_token(self) -> str:
        return str(self.section("auth").get("token") or "").strip()

    # --- events / dashboard ---
    def event_defaults(self) -> Dict[str, str]:
        defaults = self.section("events").get("defaults") or {}
        out = {"time": "00:00", "type": "Webinar", "participants": "-"}
        out.update({str(k): str(v) for k, v in defaults.items()})
        return out

    def recent_news_days(self) -> int:
        return int(self.section("dashboard").get("recent_news_days", 7))

    def system_status(self) -> str:
        return str(self.section("dashboard").get("system_status", "Active"))

    def version(self) -> str:
        return str(self.section("dashboard").get("version", "1.0.0"))

    def with_overrides(self, overrides: Dict[str, Dict[str, Any]]) -> "AppConfig":
        """Returns a copy with the given {section: {key: value}} merged in."""
        merged = {k: dict(v) if isinstance(v, dict) else v for k, v in self.raw.items()}
        for section, values in overrides.items():
            merged.setdefault(section, {})
            merged[section].update(values)
        return AppConfig(raw=merged)


def _apply_env(data: Dict[str, Any], environ: Dict[str, str]) -> Dict[str, Any]:
    for env_key, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(env_key)
        if value is None or value.strip() == "":
            continue
        data.setdefault(section, {})
        data[section][key] = value.strip()
    return data


_cached: Optional[AppConfig] = None


def load_app_config(path: Path | None = None, *, reload: bool = False) -> AppConfig:
    global _cached
    if _cached is not None and not reload and path is None:
        return _cached

    p = path or Path(os.getenv("GIS_CONFIG_PATH", "") or DEFAULT_CONFIG_PATH)
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    cfg = AppConfig(raw=_apply_env(data, dict(os.environ)))
    if path is None:
        _cached = cfg
    return cfg
