"""Tests for TransmitterConfig."""

import pytest

from rawhttp import TransmitterConfig


class TestTransmitterConfig:
    """Tests for TransmitterConfig dataclass."""

    def test_default_values(self):
        """Test default configuration values."""
        config = TransmitterConfig()

        assert config.connect_timeout == 10.0
        assert config.read_timeout is None
        assert config.write_timeout is None
        assert config.verify_ssl is True
        assert config.read_chunk_size == 65536
        assert config.max_pending_events == 16
        assert config.verbose is False

    def test_custom_values(self):
        """Test custom configuration values."""
        config = TransmitterConfig(
            connect_timeout=None,
            read_timeout=5.0,
            verify_ssl=False,
            read_chunk_size=1024,
            max_pending_events=1,
            verbose=True,
        )

        assert config.connect_timeout is None
        assert config.read_timeout == 5.0
        assert config.verify_ssl is False
        assert config.read_chunk_size == 1024
        assert config.max_pending_events == 1
        assert config.verbose is True

    @pytest.mark.parametrize("name", ["connect_timeout", "read_timeout", "write_timeout"])
    def test_validation_timeouts(self, name):
        """Test validation rejects non-positive timeouts."""
        with pytest.raises(ValueError, match=name):
            TransmitterConfig(**{name: 0})

    def test_validation_read_chunk_size(self):
        """Test validation rejects empty reads."""
        with pytest.raises(ValueError, match="read_chunk_size"):
            TransmitterConfig(read_chunk_size=0)

    def test_validation_max_pending_events(self):
        """Test validation rejects an unbuffered channel."""
        with pytest.raises(ValueError, match="max_pending_events"):
            TransmitterConfig(max_pending_events=0)
