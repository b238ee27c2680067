"""
Auction registry configuration, loaded from environment variables.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

ONE_DAY_NS = 86_400 * 1_000_000_000


class DeletePolicy(Enum):
    """Ordering of removal and ownership check in delete_auction"""

    CHECK_THEN_REMOVE = "check_then_remove"
    REMOVE_THEN_CHECK = "remove_then_check"  # Legacy: non-owner attempts still remove


@dataclass
class AuctionConfig:
    """Runtime settings for the store and its HTTP surface"""

    state_dir: Path = Path(".state")
    db_name: str = "auctions.db"
    duration_ns: int = ONE_DAY_NS
    delete_policy: DeletePolicy = DeletePolicy.CHECK_THEN_REMOVE
    max_key_bytes: int = 44
    max_value_bytes: int = 1024
    service_name: str = "auction-registry"
    otlp_endpoint: Optional[str] = None

    def __post_init__(self):
        if self.duration_ns <= 0:
            raise ValueError(f"Auction duration must be positive: {self.duration_ns}")
        if self.max_key_bytes < 36:
            raise ValueError(f"Key slot too small for auction ids: {self.max_key_bytes}")
        if self.max_value_bytes <= 0:
            raise ValueError(f"Value slot must be positive: {self.max_value_bytes}")

    @property
    def db_path(self) -> Path:
        return self.state_dir / self.db_name

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuctionConfig":
        """
        Build config from AUCTION_* variables.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        try:
            delete_policy = DeletePolicy(
                env.get("AUCTION_DELETE_POLICY", defaults.delete_policy.value).lower()
            )
        except ValueError:
            raise ValueError(
                f"Invalid AUCTION_DELETE_POLICY: {env.get('AUCTION_DELETE_POLICY')}"
            )

        return cls(
            state_dir=Path(env.get("AUCTION_STATE_DIR", str(defaults.state_dir))),
            db_name=env.get("AUCTION_DB_NAME", defaults.db_name),
            duration_ns=int(env.get("AUCTION_DURATION_NS", defaults.duration_ns)),
            delete_policy=delete_policy,
            max_key_bytes=int(env.get("AUCTION_MAX_KEY_BYTES", defaults.max_key_bytes)),
            max_value_bytes=int(
                env.get("AUCTION_MAX_VALUE_BYTES", defaults.max_value_bytes)
            ),
            service_name=env.get("AUCTION_SERVICE_NAME", defaults.service_name),
            otlp_endpoint=env.get("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
        )
