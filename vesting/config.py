"""
Token Vesting Ledger Configuration
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Optional

from vesting.clock import Clock, create_clock
from vesting.constants import (
    API_DEFAULT_HOST,
    API_DEFAULT_PORT,
    API_MAX_BATCH_SIZE,
    DECIMALS,
    NTP_DEFAULT_HOST,
    NTP_QUERY_TIMEOUT_MS,
    NTP_RETRY_COUNT,
    PRESALE_TRANCHES,
    TEAM_TRANCHES,
    TOKEN_INITIAL_SUPPLY,
    TOKEN_NAME,
    TOKEN_SYMBOL,
    TREASURY_TRANCHES,
    VESTING_LOCKED_SUPPLY,
)
from vesting.core.schedule import ScheduleDefinition
from vesting.core.state import Category
from vesting.errors import InvalidScheduleError

logger = logging.getLogger(__name__)


def _pairs(tranches) -> List[List[int]]:
    return [[ts, bps] for ts, bps in tranches]


@dataclass
class TokenConfig:
    """Reference token and vault funding, in whole tokens."""
    name: str = TOKEN_NAME
    symbol: str = TOKEN_SYMBOL
    decimals: int = DECIMALS
    initial_supply: int = TOKEN_INITIAL_SUPPLY
    locked_supply: int = VESTING_LOCKED_SUPPLY

    @property
    def unit(self) -> int:
        return 10 ** self.decimals


@dataclass
class ScheduleConfig:
    """Per-category [unlock_timestamp, cumulative_bps] lists."""
    treasury: List[List[int]] = field(default_factory=lambda: _pairs(TREASURY_TRANCHES))
    team: List[List[int]] = field(default_factory=lambda: _pairs(TEAM_TRANCHES))
    presale: List[List[int]] = field(default_factory=lambda: _pairs(PRESALE_TRANCHES))

    def pairs_for(self, category: Category) -> List[List[int]]:
        return getattr(self, category.value)


@dataclass
class ClockConfig:
    """Time source configuration."""
    source: str = "system"          # "system", "ntp" or "mock"
    ntp_host: str = NTP_DEFAULT_HOST
    ntp_timeout_ms: int = NTP_QUERY_TIMEOUT_MS
    ntp_retries: int = NTP_RETRY_COUNT
    mock_time: Optional[int] = None


@dataclass
class StorageConfig:
    """Storage configuration."""
    data_dir: str = "./data"
    db_name: str = "vesting_state.db"


@dataclass
class APIConfig:
    """API server configuration."""
    enabled: bool = True
    host: str = API_DEFAULT_HOST
    port: int = API_DEFAULT_PORT
    max_batch_size: int = API_MAX_BATCH_SIZE


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size_mb: int = 100
    backup_count: int = 5


@dataclass
class VestingConfig:
    """
    Complete deployment configuration.

    Token metadata and funding, unlock schedules, time source, storage,
    API and logging.
    """
    name: str = "vesting-ledger"
    open_unlock: bool = False

    token: TokenConfig = field(default_factory=TokenConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    clock: ClockConfig = field(default_factory=ClockConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def data_path(self) -> Path:
        return Path(self.storage.data_dir)

    @property
    def db_path(self) -> Path:
        return self.data_path / self.storage.db_name

    def schedules(self) -> Dict[Category, ScheduleDefinition]:
        """
        Build the per-category schedules.

        Raises:
            InvalidScheduleError: a configured schedule is malformed
        """
        return {
            category: ScheduleDefinition.from_pairs(category, self.schedule.pairs_for(category))
            for category in Category
        }

    def create_clock(self) -> Clock:
        if self.clock.source == "ntp":
            return create_clock(
                "ntp",
                host=self.clock.ntp_host,
                timeout_ms=self.clock.ntp_timeout_ms,
                retries=self.clock.ntp_retries,
            )
        if self.clock.source == "mock":
            return create_clock("mock", base_time=self.clock.mock_time)
        return create_clock(self.clock.source)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        # Token validation
        if not self.token.name:
            errors.append("token name cannot be empty")
        if not self.token.symbol:
            errors.append("token symbol cannot be empty")
        if self.token.decimals < 0:
            errors.append(f"Invalid decimals: {self.token.decimals}")
        if self.token.initial_supply < 0:
            errors.append(f"Invalid initial supply: {self.token.initial_supply}")
        if not 0 <= self.token.locked_supply <= self.token.initial_supply:
            errors.append(
                f"locked_supply {self.token.locked_supply} must be within "
                f"[0, {self.token.initial_supply}]"
            )

        # Schedule validation
        try:
            self.schedules()
        except InvalidScheduleError as e:
            errors.append(e.message)
        except (TypeError, ValueError) as e:
            errors.append(f"Malformed schedule: {e}")

        # Clock validation
        if self.clock.source not in ("system", "ntp", "mock"):
            errors.append(f"Unknown clock source: {self.clock.source}")
        if self.clock.ntp_retries < 1:
            errors.append("ntp_retries must be at least 1")

        # Storage validation
        if not self.storage.data_dir:
            errors.append("data_dir cannot be empty")

        # API validation
        if self.api.enabled:
            if self.api.port < 1 or self.api.port > 65535:
                errors.append(f"Invalid API port: {self.api.port}")
            if self.api.max_batch_size < 1:
                errors.append("max_batch_size must be at least 1")

        return errors

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str) -> "VestingConfig":
        """Load configuration from file."""
        with open(path, 'r') as f:
            data = json.load(f)

        config = cls(
            name=data.get("name", "vesting-ledger"),
            open_unlock=data.get("open_unlock", False),
        )

        if "token" in data:
            config.token = TokenConfig(**data["token"])

        if "schedule" in data:
            config.schedule = ScheduleConfig(**data["schedule"])

        if "clock" in data:
            config.clock = ClockConfig(**data["clock"])

        if "storage" in data:
            config.storage = StorageConfig(**data["storage"])

        if "api" in data:
            config.api = APIConfig(**data["api"])

        if "log" in data:
            config.log = LogConfig(**data["log"])

        logger.info(f"Configuration loaded from {path}")
        return config

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "name": self.name,
            "open_unlock": self.open_unlock,
            "token": asdict(self.token),
            "schedule": asdict(self.schedule),
            "clock": asdict(self.clock),
            "storage": asdict(self.storage),
            "api": asdict(self.api),
            "log": asdict(self.log),
        }


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
    )
