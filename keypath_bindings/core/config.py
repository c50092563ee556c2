from pathlib import Path
from typing import Any, Dict, Literal, Optional
import json
from pydantic import BaseModel, Field
from loguru import logger
from .events import Signal

# --- Settings Models ---
class GeneralSettings(BaseModel):
    debug_mode: bool = True
    log_dir: Optional[str] = None

class BindingSettings(BaseModel):
    default_dispatcher: Literal["main", "immediate"] = "main"
    # When False, a source declared as Any may feed any destination
    strict_types: bool = True

class DemoSettings(BaseModel):
    window_title: str = "KeyPath Bindings Demo"
    uptime_interval_ms: int = 1000
    slider_minimum: int = 0
    slider_maximum: int = 100

class AppConfig(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    binding: BindingSettings = Field(default_factory=BindingSettings)
    demo: DemoSettings = Field(default_factory=DemoSettings)

# --- Manager ---
class ConfigManager:
    """
    Loads, validates and persists AppConfig.

    JSON files are rewritten on every update. TOML files are read-only
    (``tomllib`` cannot write), so updates to them live in memory only.
    Listeners on ``on_changed`` receive ``(section, key, value)``.
    """
    def __init__(self, filepath: str = "config.json"):
        self.path = Path(filepath)
        self._data = AppConfig()
        self.on_changed = Signal("ConfigChanged")
        self._load()

    @property
    def filepath(self) -> str:
        return str(self.path)

    @property
    def data(self) -> AppConfig:
        return self._data

    def _section(self, section: str) -> BaseModel:
        if section not in AppConfig.model_fields:
            raise ValueError(f"Invalid section: {section}")
        return getattr(self._data, section)

    def update(self, section: str, key: str, value: Any):
        """Set one value, re-validating its section before it is applied."""
        current = self._section(section)
        model = type(current)
        if key not in model.model_fields:
            raise ValueError(f"Invalid key: {key} in section {section}")

        # pydantic ValidationError is a ValueError
        validated = model.model_validate({**current.model_dump(), key: value})
        setattr(self._data, section, validated)
        self._save()
        self.on_changed.emit(section, key, getattr(validated, key))

    def get(self, section: str, key: str) -> Any:
        return getattr(self._section(section), key)

    def _read(self) -> Dict[str, Any]:
        if self.path.suffix == ".toml":
            import tomllib
            with self.path.open("rb") as f:
                return tomllib.load(f)
        return json.loads(self.path.read_text(encoding="utf-8"))

    def _load(self):
        if not self.path.is_file():
            logger.info(f"No config at {self.path}; writing defaults")
            self._save()
            return
        try:
            self._data = AppConfig.model_validate(self._read())
            logger.debug(f"Loaded config from {self.path}")
        except Exception as e:
            logger.error(f"Failed to load config from {self.path}: {e}")
            self._save()

    def _save(self):
        if self.path.suffix == ".toml":
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._data.model_dump(), indent=4), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save config to {self.path}: {e}")
