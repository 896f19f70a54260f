from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict, Tuple
import yaml

from premade_creator.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_TICK_SECONDS = 1.0
DEFAULT_DATA_FILE = "data/premade_creator.json"
DEFAULT_FIELD_BUDGET = 900
DEFAULT_EMBED_COLOR = (120, 17, 176)
EMBED_FIELD_LIMIT = 1024


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed accessors for the premade creator settings (tick length, data file,
    embed field budget and colour), falling back to defaults whenever a key is
    missing or malformed. Uses fcntl file locks for safe concurrent access
    across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self) -> Dict[str, Any]:
        section = self._data.get("premade_creator", {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def tick_seconds(self) -> float:
        """Return the scheduler tick length in seconds (default 1 second)."""
        value = self._section().get("tick_seconds", DEFAULT_TICK_SECONDS)
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid tick_seconds %r; using %.1f", value, DEFAULT_TICK_SECONDS)
            return DEFAULT_TICK_SECONDS
        if seconds <= 0:
            logger.warning("[APP CONFIGURATION] tick_seconds must be positive; using %.1f", DEFAULT_TICK_SECONDS)
            return DEFAULT_TICK_SECONDS
        return seconds

    @property
    def data_path(self) -> Path:
        """Return the path of the committed premade configuration file."""
        value = self._section().get("data_file") or DEFAULT_DATA_FILE
        return Path(str(value)).resolve()

    @property
    def field_budget(self) -> int:
        """Return the per-field character budget used when batching text.

        Capped at Discord's 1024 character embed field limit.
        """
        value = self._section().get("field_budget", DEFAULT_FIELD_BUDGET)
        try:
            budget = int(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid field_budget %r; using %d", value, DEFAULT_FIELD_BUDGET)
            return DEFAULT_FIELD_BUDGET
        if budget <= 0:
            return DEFAULT_FIELD_BUDGET
        return min(budget, EMBED_FIELD_LIMIT)

    @property
    def embed_color(self) -> Tuple[int, int, int]:
        """Return the RGB colour used for premade embeds."""
        value = self._section().get("embed_color", DEFAULT_EMBED_COLOR)
        if isinstance(value, (list, tuple)) and len(value) == 3:
            try:
                red, green, blue = (max(0, min(255, int(c))) for c in value)
                return (red, green, blue)
            except (TypeError, ValueError):
                pass
        logger.warning("[APP CONFIGURATION] Invalid embed_color %r; using default", value)
        return DEFAULT_EMBED_COLOR


# Loaded once at startup by the composition root
def load_app_config(config_path: Path = CONFIG_PATH) -> AppConfig:
    return AppConfig(config_path)
