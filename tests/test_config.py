"""
Token Vesting Ledger Configuration Tests
"""

import logging

from vesting.clock import MockClock, MonotonicClock, NTPClock
from vesting.config import LogConfig, VestingConfig, setup_logging
from vesting.constants import API_DEFAULT_PORT, ONE_TOKEN, UNLOCK_2022_06_30
from vesting.core.schedule import default_schedules
from vesting.core.state import Category


class TestVestingConfig:
    """Tests for VestingConfig."""

    def test_defaults_valid(self):
        config = VestingConfig()
        assert config.validate() == []
        assert config.token.unit == ONE_TOKEN
        assert config.api.port == API_DEFAULT_PORT

    def test_default_schedules_match_reference(self):
        built = VestingConfig().schedules()
        reference = default_schedules()
        for category in Category:
            assert built[category] == reference[category]

    def test_invalid_schedule_reported(self):
        config = VestingConfig()
        config.schedule.team = [[UNLOCK_2022_06_30, 5000]]

        errors = config.validate()
        assert len(errors) == 1
        assert "team" in errors[0]

    def test_invalid_values_reported(self):
        config = VestingConfig()
        config.token.locked_supply = config.token.initial_supply + 1
        config.api.port = 0
        config.clock.source = "sundial"

        errors = config.validate()
        assert len(errors) == 3

    def test_disabled_api_skips_port_check(self):
        config = VestingConfig()
        config.api.enabled = False
        config.api.port = 0
        assert config.validate() == []

    def test_save_load(self, tmp_path):
        config = VestingConfig(name="test-vault", open_unlock=True)
        config.token.symbol = "TST"
        config.clock.source = "mock"
        config.clock.mock_time = 42
        config.schedule.presale = [[10, 5000], [20, 10000]]

        path = tmp_path / "config.json"
        config.save(str(path))
        loaded = VestingConfig.load(str(path))

        assert loaded.to_dict() == config.to_dict()
        assert loaded.schedules()[Category.PRESALE].cliff == 10

    def test_db_path(self):
        config = VestingConfig()
        config.storage.data_dir = "/var/lib/vesting"
        assert str(config.db_path) == "/var/lib/vesting/vesting_state.db"

    def test_create_clock(self):
        config = VestingConfig()
        config.clock.source = "mock"
        config.clock.mock_time = 1234
        clock = config.create_clock()
        assert isinstance(clock, MockClock)
        assert clock.now() == 1234

        config.clock.source = "ntp"
        config.clock.ntp_host = "ntp.test"
        clock = config.create_clock()
        assert isinstance(clock, MonotonicClock)
        assert isinstance(clock.source, NTPClock)
        assert clock.source.host == "ntp.test"


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "vesting.log"
        root = logging.getLogger()
        saved = list(root.handlers)
        root.handlers.clear()
        try:
            setup_logging(LogConfig(level="DEBUG", file=str(log_file)))
            logging.getLogger("vesting.test").info("hello")
            for handler in root.handlers:
                handler.flush()
            assert "hello" in log_file.read_text()
            assert root.level == logging.DEBUG
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved
