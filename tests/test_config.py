"""
Tests for configuration persistence.
"""

from piano_transcriber.config import Config


class TestConfig:
    """Tests for the Config class."""
    
    def test_defaults(self, tmp_path):
        """Test default values."""
        config = Config(_config_dir=tmp_path)
        assert config.playback.tick_interval_ms == 100
        assert config.notation.unit_denominator == 8
        assert config.export.page_break_y_mm == 270.0
        assert config.config_file == tmp_path / "config.json"
    
    def test_save_and_load(self, tmp_path):
        """Test saved settings load back."""
        config = Config(_config_dir=tmp_path)
        config.playback.default_volume = 40
        config.notation.key = "G"
        config.save()
        
        loaded = Config.load(tmp_path)
        assert loaded.playback.default_volume == 40
        assert loaded.notation.key == "G"
    
    def test_corrupt_file(self, tmp_path):
        """Test a corrupt config file falls back to defaults."""
        (tmp_path / "config.json").write_text("{not json")
        config = Config.load(tmp_path)
        assert config.playback.default_volume == 75
    
    def test_recent_files(self, tmp_path):
        """Test recent files are deduplicated and capped."""
        config = Config(_config_dir=tmp_path, recent_files_max=3)
        for name in ["a", "b", "c", "a", "d"]:
            config.add_recent_file(name)
        assert config.recent_files == ["d", "a", "c"]
        assert Config.load(tmp_path).recent_files == ["d", "a", "c"]
