"""
Bridgegate TOML Configuration Loader

Loads config.toml into dataclasses and applies environment variable overrides.

Environment variable mapping:
    [bridge] chain_id            → BRIDGEGATE_CHAIN_ID
    [bridge] validator_fee       → BRIDGEGATE_VALIDATOR_FEE
    [bridge] initial_validators  → BRIDGEGATE_VALIDATORS (comma separated)
    [bridge] state_file          → BRIDGEGATE_STATE_FILE
    [logging] level              → BRIDGEGATE_LOG_LEVEL

Validator private keys never belong in TOML; the validator CLI reads them
from a key file or BRIDGEGATE_VALIDATOR_KEY.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ..constants import BRIDGEGATE_CONFIG, DEFAULT_CHAIN_ID, DEFAULT_VALIDATOR_FEE
from ..crypto.address import is_address, to_checksum_address
from ..logger import get_logger

logger = get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class BridgeSectionConfig:
    """[bridge] section."""
    chain_id: int = DEFAULT_CHAIN_ID
    validator_fee: int = DEFAULT_VALIDATOR_FEE
    initial_validators: List[str] = field(default_factory=list)
    locked: bool = False
    custody_address: str = ""
    state_file: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeSectionConfig":
        return cls(
            chain_id=data.get("chain_id", DEFAULT_CHAIN_ID),
            validator_fee=data.get("validator_fee", DEFAULT_VALIDATOR_FEE),
            initial_validators=list(data.get("initial_validators", [])),
            locked=data.get("locked", False),
            custody_address=data.get("custody_address", ""),
            state_file=data.get("state_file", ""),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("BRIDGEGATE_CHAIN_ID"):
            self.chain_id = int(v)
        if v := os.environ.get("BRIDGEGATE_VALIDATOR_FEE"):
            self.validator_fee = int(v)
        if v := os.environ.get("BRIDGEGATE_VALIDATORS"):
            self.initial_validators = [a.strip() for a in v.split(",") if a.strip()]
        if v := os.environ.get("BRIDGEGATE_STATE_FILE"):
            self.state_file = v


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(level=str(data.get("level", "INFO")).upper())

    def apply_env(self) -> None:
        if v := os.environ.get("BRIDGEGATE_LOG_LEVEL"):
            self.level = v.upper()


@dataclass
class BridgeSettings:
    """
    Deployment settings of one bridge instance.
    """
    bridge: BridgeSectionConfig = field(default_factory=BridgeSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeSettings":
        """Create settings from a parsed TOML dict."""
        return cls(
            bridge=BridgeSectionConfig.from_dict(data.get("bridge", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "BridgeSettings":
        """
        Load settings from a TOML file. A missing file yields the defaults.

        Args:
            config_path: Path to config.toml

        Returns:
            BridgeSettings instance
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {config_path}, using defaults")
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            raw = tomllib.load(f)

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.bridge.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Returns:
            True if all valid

        Raises:
            ValueError: on invalid config
        """
        if self.bridge.chain_id < 1:
            raise ValueError("chain_id must be >= 1")
        if self.bridge.validator_fee < 0:
            raise ValueError("validator_fee cannot be negative")
        if not self.bridge.initial_validators:
            raise ValueError("initial_validators cannot be empty")
        for address in self.bridge.initial_validators:
            if not is_address(address):
                raise ValueError(f"Invalid validator address: {address}")
        if len({to_checksum_address(a) for a in self.bridge.initial_validators}) != len(self.bridge.initial_validators):
            raise ValueError("initial_validators contains duplicates")
        if self.bridge.custody_address and not is_address(self.bridge.custody_address):
            raise ValueError(f"Invalid custody address: {self.bridge.custody_address}")
        if self.logging.level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.logging.level}")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bridge": {
                "chain_id": self.bridge.chain_id,
                "validator_fee": self.bridge.validator_fee,
                "initial_validators": list(self.bridge.initial_validators),
                "locked": self.bridge.locked,
                "custody_address": self.bridge.custody_address,
                "state_file": self.bridge.state_file,
            },
            "logging": {
                "level": self.logging.level,
            },
        }


def load_settings(path: Optional[str] = None) -> BridgeSettings:
    """
    Load bridge settings.

    Resolution order:
        1. Explicit *path* argument
        2. BRIDGEGATE_CONFIG env var (or .env)
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("BRIDGEGATE_CONFIG") or str(BRIDGEGATE_CONFIG)

    return BridgeSettings.from_file(path)
