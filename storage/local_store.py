# storage/local_store.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging
import os
import tempfile

logger = logging.getLogger("koenawin.storage")


# ----------------------------
# Config
# ----------------------------

DEFAULT_STORE_PATH = "~/.koenawin/progress.json"
DEFAULT_ROLLOVER_INTERVAL_SECONDS = 60


@dataclass
class LocalStoreConfig:
    store_path: str = DEFAULT_STORE_PATH
    rollover_interval_seconds: int = DEFAULT_ROLLOVER_INTERVAL_SECONDS

    # Record keys (one JSON object, all values stored as strings):
    #   start_date, today_cycles, last_date, goal_celebrated, bead_mode

    @property
    def path(self) -> Path:
        return Path(os.path.expanduser(self.store_path))


def config_from_mapping(raw: Optional[Dict[str, Any]], env: Optional[Dict[str, str]] = None) -> LocalStoreConfig:
    """
    Build config from a `[koenawin]` secrets table.
    KOENAWIN_STORE_PATH in the environment wins over the table.
    """
    raw = dict(raw or {})
    env = os.environ if env is None else env
    path = env.get("KOENAWIN_STORE_PATH") or str(raw.get("store_path") or DEFAULT_STORE_PATH)
    try:
        interval = int(raw.get("rollover_interval_seconds", DEFAULT_ROLLOVER_INTERVAL_SECONDS))
    except (TypeError, ValueError):
        interval = DEFAULT_ROLLOVER_INTERVAL_SECONDS
    if interval <= 0:
        interval = DEFAULT_ROLLOVER_INTERVAL_SECONDS
    return LocalStoreConfig(store_path=path, rollover_interval_seconds=interval)


# ----------------------------
# Store
# ----------------------------

class LocalJsonStore:
    """
    Key-value record on a local JSON file.
    Writes replace the whole file atomically (temp file + os.replace),
    so a reader sees either the previous record or the new one.
    """
    def __init__(self, config: Optional[LocalStoreConfig] = None):
        self.config = config or LocalStoreConfig()

    @property
    def path(self) -> Path:
        return self.config.path

    def read_all(self) -> Dict[str, Any]:
        p = self.path
        if not p.exists():
            return {}
        try:
            obj = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("progress record at %s is unreadable, using defaults: %s", p, e)
            return {}
        if not isinstance(obj, dict):
            logger.warning("progress record at %s is not an object, using defaults", p)
            return {}
        return obj

    def write_all(self, record: Dict[str, Any]) -> None:
        p = self.path
        p.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".progress-", suffix=".tmp", dir=str(p.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, ensure_ascii=False, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, p)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        logger.debug("progress record written to %s", p)
