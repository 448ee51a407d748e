"""
Config loader for aerospace-swipe.
Loads YAML configuration with dataclass validation.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"


@dataclass
class SwipeConfig:
    natural_swipe: bool = False
    wrap_around: bool = True
    skip_empty: bool = True     # Leave empty workspaces out of wrap-around
    haptic: bool = False
    haptic_pattern: int = 3
    fingers: int = 3            # Informational, recognizer always uses 3

    @property
    def swipe_left(self) -> str:
        return "next" if self.natural_swipe else "prev"

    @property
    def swipe_right(self) -> str:
        return "prev" if self.natural_swipe else "next"


@dataclass
class GestureConfig:
    active_touch_threshold: float = 0.05  # Min contact size to count as a finger
    position_threshold: float = 0.15      # Displacement from swipe start
    velocity_threshold: float = 0.5       # Average x velocity
    cooldown: float = 0.3                 # Seconds after a trigger


@dataclass
class IpcConfig:
    socket_path: Optional[str] = None     # None = per-user default
    buffer_size: int = 2048
    max_response_size: int = 65536


@dataclass
class TouchpadConfig:
    device: Optional[str] = None          # None = auto-detect
    grab: bool = False
    poll_timeout: float = 0.1


@dataclass
class Config:
    swipe: SwipeConfig = field(default_factory=SwipeConfig)
    gestures: GestureConfig = field(default_factory=GestureConfig)
    ipc: IpcConfig = field(default_factory=IpcConfig)
    touchpad: TouchpadConfig = field(default_factory=TouchpadConfig)


def _dict_to_dataclass(cls, data: dict):
    """Convert a dict to a dataclass, ignoring unknown keys."""
    if not isinstance(data, dict):
        return cls()
    field_names = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in field_names}
    return cls(**filtered)


def default_config_paths() -> List[Path]:
    """Locations searched when no explicit config path is given."""
    return [
        Path.cwd() / CONFIG_FILENAME,
        Path.home() / ".config" / "aerospace-swipe" / CONFIG_FILENAME,
    ]


def find_config(config_path: Optional[Path] = None) -> Optional[Path]:
    if config_path is not None:
        config_path = Path(config_path)
        return config_path if config_path.exists() else None

    for candidate in default_config_paths():
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, ./config.yaml and then
                    ~/.config/aerospace-swipe/config.yaml are tried.

    Returns:
        Config dataclass with all settings. Defaults are used when no file
        is found or the file cannot be parsed.
    """
    path = find_config(config_path)

    if path is None:
        logger.info("Using default configuration.")
        return Config()

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse config {path}: {e}. Using defaults.")
        return Config()

    if not isinstance(data, dict):
        logger.warning(f"Config {path} is not a mapping. Using defaults.")
        return Config()

    logger.info(f"Loaded config from: {path}")

    return Config(
        swipe=_dict_to_dataclass(SwipeConfig, data.get('swipe')),
        gestures=_dict_to_dataclass(GestureConfig, data.get('gestures')),
        ipc=_dict_to_dataclass(IpcConfig, data.get('ipc')),
        touchpad=_dict_to_dataclass(TouchpadConfig, data.get('touchpad')),
    )
