"""
Configuration module for Piano Transcriber.

Handles playback, notation and export settings, persisted as JSON in a
per-user directory.
"""

import json
import logging
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class PlaybackConfig:
    """Configuration for the playback clock and audio sink."""
    tick_interval_ms: int = 100
    default_volume: int = 75  # percent
    sample_rate: int = 44100
    synth_amplitude: float = 0.25


@dataclass
class NotationConfig:
    """Configuration for ABC notation output."""
    default_title: str = "Untitled Song"
    beats_per_measure: int = 4
    unit_denominator: int = 8  # L:1/8, one unit = one eighth note
    key: str = "C"
    lyric_tolerance: float = 0.1  # seconds
    fallback_pitch: str = "C"


@dataclass
class ExportConfig:
    """Layout hints handed to the document export collaborator."""
    sheet_orientation: str = "landscape"
    sheet_image_width_mm: float = 277.0
    lyrics_orientation: str = "portrait"
    lyrics_image_width_mm: float = 180.0
    portrait_page_width_mm: float = 210.0
    margin_mm: float = 10.0
    text_indent_mm: float = 20.0
    title_font_size: int = 18
    body_font_size: int = 12
    image_top_mm: float = 30.0  # below the centred title on portrait pages
    heading_y_mm: float = 20.0
    first_line_y_mm: float = 40.0
    continued_line_y_mm: float = 20.0
    line_spacing_mm: float = 10.0
    page_break_y_mm: float = 270.0


def _default_config_dir() -> Path:
    return Path.home() / ".piano_transcriber"


@dataclass
class Config:
    """
    Main configuration class for Piano Transcriber.
    
    Handles loading/saving settings for playback, notation and export.
    """
    
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    notation: NotationConfig = field(default_factory=NotationConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    
    # Recently opened transcriptions
    recent_files: list = field(default_factory=list)
    recent_files_max: int = 10
    
    _config_dir: Path = field(default_factory=_default_config_dir)
    _config_file: Path = field(default=None)
    
    def __post_init__(self):
        """Initialize configuration paths."""
        self._config_dir = Path(self._config_dir)
        self._config_dir.mkdir(parents=True, exist_ok=True)
        self._config_file = self._config_dir / "config.json"
    
    @property
    def config_file(self) -> Path:
        return self._config_file
    
    def save(self) -> None:
        """Save configuration to disk."""
        data = {
            "playback": asdict(self.playback),
            "notation": asdict(self.notation),
            "export": asdict(self.export),
            "recent_files": self.recent_files[:self.recent_files_max],
        }
        
        with open(self._config_file, "w") as f:
            json.dump(data, f, indent=2)
    
    @classmethod
    def load(cls, config_dir: Optional[Path] = None) -> "Config":
        """Load configuration from disk or create default."""
        config = cls() if config_dir is None else cls(_config_dir=Path(config_dir))
        
        if config._config_file.exists():
            try:
                with open(config._config_file, "r") as f:
                    data = json.load(f)
                
                if "playback" in data:
                    config.playback = PlaybackConfig(**data["playback"])
                if "notation" in data:
                    config.notation = NotationConfig(**data["notation"])
                if "export" in data:
                    config.export = ExportConfig(**data["export"])
                
                config.recent_files = data.get("recent_files", [])
                
            except (json.JSONDecodeError, TypeError, KeyError) as e:
                logger.warning(f"Could not load config file: {e}")
        
        return config
    
    def add_recent_file(self, filepath: str) -> None:
        """Add a file to recent files list."""
        filepath = str(filepath)
        
        if filepath in self.recent_files:
            self.recent_files.remove(filepath)
        
        self.recent_files.insert(0, filepath)
        self.recent_files = self.recent_files[:self.recent_files_max]
        
        self.save()


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _config
    _config = Config()
    _config.save()
