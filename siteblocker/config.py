import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_HOSTS_FILE = "/etc/hosts"
DEFAULT_EDITOR = "vi"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "site-blocker" / "config.json"

HOSTS_FILE_ENV = "SITE_BLOCKER_HOSTS_FILE"
CONFIG_ENV = "SITE_BLOCKER_CONFIG"


@dataclass
class Config:
    hosts_file: str = DEFAULT_HOSTS_FILE
    editor: str = DEFAULT_EDITOR
    backup: bool = False
    atomic_write: bool = False

    def resolve_editor(self) -> str:
        """$EDITOR wins over the configured editor."""
        return os.environ.get("EDITOR") or self.editor


def load_config(path: Optional[str] = None) -> Config:
    """Loads configuration from a JSON file, falling back to defaults."""
    path = Path(path or os.environ.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH)
    if not path.exists():
        logger.debug("no config file at %s", path)
        return Config()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as err:
        logger.warning("ignoring config file %s: %s", path, err)
        return Config()

    if not isinstance(data, dict):
        logger.warning("ignoring config file %s: expected a JSON object", path)
        return Config()

    known = {field.name for field in fields(Config)}
    for key in data.keys() - known:
        logger.warning("%s: unknown config key %r", path, key)
    logger.debug("loaded config from %s", path)
    return Config(**{key: value for key, value in data.items() if key in known})
