import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional
import yaml
from blinker import Signal
from platformdirs import user_config_dir


logger = logging.getLogger(__name__)

VERSION = "1.0.0"

CONFIG_DIR = Path(user_config_dir("desaturate"))
CONFIG_FILE = Path(
    os.environ.get("DESATURATE_CONFIG", CONFIG_DIR / "config.yaml")
)

DEFAULT_OUTPUT_TYPE = "image/png"
DEFAULT_USER_AGENT = f"desaturate/{VERSION}"


def getflag(name, default=False):
    default = "true" if default else "false"
    return os.environ.get(name, default).lower() in ("true", "1")


class Config:
    def __init__(self):
        self.output_type: str = DEFAULT_OUTPUT_TYPE
        self.output_quality: Optional[float] = None
        self.cross_origin: Optional[str] = None
        self.user_agent: str = DEFAULT_USER_AGENT
        self.changed = Signal()

    def set(self, name: str, value: Any):
        if name not in self.to_dict():
            raise AttributeError(f"Unknown config option: {name}")
        if getattr(self, name) == value:
            return
        setattr(self, name, value)
        self.changed.send(self, name=name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_type": self.output_type,
            "output_quality": self.output_quality,
            "cross_origin": self.cross_origin,
            "user_agent": self.user_agent,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        config = cls()
        config.output_type = data.get("output_type", config.output_type)
        config.output_quality = data.get(
            "output_quality", config.output_quality
        )
        config.cross_origin = data.get("cross_origin", config.cross_origin)
        config.user_agent = data.get("user_agent", config.user_agent)
        return config


class ConfigManager:
    def __init__(self, filepath: Path):
        self.filepath = Path(filepath)
        self.config: Config = self.load_config()

    def save(self):
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(self.filepath, "w") as f:
            yaml.safe_dump(self.config.to_dict(), f)

    def load_config(self) -> Config:
        if not self.filepath.exists():
            logger.debug(f"No config at {self.filepath}, using defaults")
            return Config()

        with open(self.filepath, "r") as f:
            data = yaml.safe_load(f)
        if not data:
            return Config()
        logger.debug(f"Loaded config from {self.filepath}")
        return Config.from_dict(data)


config_mgr: Optional[ConfigManager] = None


def get_config() -> Config:
    """
    Returns the process-wide config, loading it from CONFIG_FILE on first
    use.
    """
    global config_mgr
    if config_mgr is None:
        config_mgr = ConfigManager(CONFIG_FILE)
    return config_mgr.config
