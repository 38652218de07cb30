"""
Settings loader.

Values come from ``settings.yaml`` next to this module (or an explicit
path) and are overridden by environment variables named
``ANSWERLENS_<FIELD>``, e.g. ``ANSWERLENS_ENDPOINT_URL``.
"""
import os
import yaml
from dataclasses import dataclass, fields
from pathlib import Path

ENV_PREFIX = "ANSWERLENS_"
DEFAULT_PATH = Path(__file__).parent / "settings.yaml"


@dataclass(frozen=True)
class Settings:
    endpoint_url: str = "http://localhost:5678/webhook/answerlens"
    timeout: float = 30.0
    jpeg_quality: int = 92
    upload_field: str = "image"
    upload_filename: str = "capture.jpg"
    default_crop_fraction: float = 0.8
    preview_chars: int = 120
    log_level: str = "INFO"

    def __post_init__(self):
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be within 1..100, got {self.jpeg_quality}")
        if not 0 < self.default_crop_fraction <= 1:
            raise ValueError(f"default_crop_fraction must be within (0, 1], got {self.default_crop_fraction}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")


def load_settings(config_path=None, environ=None) -> Settings:
    """
    :param config_path: Optional YAML file; defaults to the bundled settings.yaml.
    :param environ: Mapping used for overrides (defaults to os.environ).
    """
    path = Path(config_path) if config_path else DEFAULT_PATH
    environ = os.environ if environ is None else environ

    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    known = {f.name: f.type for f in fields(Settings)}
    unknown = set(raw) - set(known)
    if unknown:
        raise ValueError(f"Unknown settings in {path}: {', '.join(sorted(unknown))}")

    values = {}
    for name, typ in known.items():
        value = environ.get(ENV_PREFIX + name.upper(), raw.get(name))
        if value is None:
            continue
        values[name] = _coerce(typ, value)

    return Settings(**values)


def _coerce(typ, value):
    caster = {"str": str, "int": int, "float": float}.get(getattr(typ, "__name__", typ), str)
    return caster(value)
