"""
Auction configuration parameters for mintauction.

Defines round timing, bid admission, supply, and payout parameters.
Values come from, in increasing precedence: the dataclass defaults, an
optional JSON file, and MINTAUCTION_* environment variables (a .env
file is loaded into the environment first when present).
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from mintauction.core.errors import ConfigError

ENV_PREFIX = "MINTAUCTION_"


class RefundPolicy(str, Enum):
    """When an outbid bidder gets their money back."""
    IMMEDIATE = "immediate"   # inside the bid() that outbids them
    DEFERRED = "deferred"     # at finalize(), or on withdraw_refund()


@dataclass
class AuctionConfig:
    """Auction-wide configuration parameters"""

    # Round timing
    duration: int = 86_400                  # Seconds a round stays open after its first bid
    time_buffer: int = 0                    # Late bids push the deadline to now + buffer (0 = off)

    # Bid admission
    min_increment: int = 10**16              # Minimum raise over the high bid, in wei

    # Supply
    supply_cap: int = 0                     # Max tokens ever issued (0 = unlimited)
    start_id: int = 1                       # First token id of the series

    # Payouts
    transfer_gas_stipend: int = 30_000      # Gas forwarded on direct refunds
    proceeds_project_id: int = 1            # Treasury project receiving winning bids
    refund_policy: RefundPolicy = RefundPolicy.IMMEDIATE

    # Wiring
    mint_adapter: str = "direct"            # direct | delegate | capability

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_dir: Path = field(default_factory=lambda: Path("logs"))

    def __post_init__(self):
        self.refund_policy = RefundPolicy(self.refund_policy)
        self.data_dir = Path(self.data_dir)
        self.log_dir = Path(self.log_dir)

    def validate(self) -> None:
        """Raise ConfigError on values the engine cannot run with."""
        if self.duration <= 0:
            raise ConfigError("duration must be positive")
        if self.time_buffer < 0:
            raise ConfigError("time_buffer must be >= 0")
        if self.min_increment <= 0:
            # A zero increment would admit a first bid of zero
            raise ConfigError("min_increment must be positive")
        if self.supply_cap < 0:
            raise ConfigError("supply_cap must be >= 0")
        if self.start_id < 1:
            raise ConfigError("start_id must be >= 1")
        if self.transfer_gas_stipend <= 0:
            raise ConfigError("transfer_gas_stipend must be positive")
        if self.proceeds_project_id <= 0:
            raise ConfigError("proceeds_project_id must be positive")
        if self.mint_adapter not in ("direct", "delegate", "capability"):
            raise ConfigError(f"Unknown mint_adapter {self.mint_adapter!r}")

    def ensure_dirs(self) -> None:
        """Create data and log directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        self.log_dir.mkdir(exist_ok=True, parents=True)

    def to_dict(self) -> dict:
        out = asdict(self)
        out["refund_policy"] = self.refund_policy.value
        out["data_dir"] = str(self.data_dir)
        out["log_dir"] = str(self.log_dir)
        return out


def _coerce(name: str, raw, default):
    """Convert a file/env value to the type of the field's default."""
    try:
        if isinstance(default, bool):
            if isinstance(raw, str):
                return raw.strip().lower() in ("1", "true", "yes", "on")
            return bool(raw)
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, RefundPolicy):
            return RefundPolicy(raw)
        if isinstance(default, Path):
            return Path(raw)
        return str(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {name}: {raw!r}") from e


def load_config(
    config_path: Optional[str] = None,
    env_file: Optional[str] = None,
) -> AuctionConfig:
    """
    Load configuration from file and environment, falling back to defaults.

    Args:
        config_path: Optional path to a JSON config file
        env_file: Optional .env file; defaults to ./.env when it exists

    Returns:
        Validated AuctionConfig instance
    """
    defaults = AuctionConfig()
    values = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        known = {f.name for f in fields(AuctionConfig)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {sorted(unknown)}")
        values.update(data)

    env_path = Path(env_file) if env_file else Path(".env")
    if env_path.exists():
        load_dotenv(env_path, override=False)

    for f in fields(AuctionConfig):
        env_value = os.environ.get(ENV_PREFIX + f.name.upper())
        if env_value is not None:
            values[f.name] = env_value

    coerced = {
        name: _coerce(name, raw, getattr(defaults, name))
        for name, raw in values.items()
    }
    config = AuctionConfig(**coerced)
    config.validate()
    return config
