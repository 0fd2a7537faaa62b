"""
Sysbridge TOML Configuration Loader

Loads sysbridge.toml with environment variable overrides. Each [section] maps
to a dataclass with from_dict / apply_env.

Environment variable mapping:
    [network] name                    → SYSBRIDGE_NETWORK
    [rent] lamports_per_byte_year     → SYSBRIDGE_RENT_LAMPORTS_PER_BYTE_YEAR
    [rent] exemption_threshold        → SYSBRIDGE_RENT_EXEMPTION_THRESHOLD
    [rent] burn_percent               → SYSBRIDGE_RENT_BURN_PERCENT
    [bridge] evm_loader_id            → SYSBRIDGE_EVM_LOADER_ID
    [logging] level                   → SYSBRIDGE_LOG_LEVEL
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import (
    ACCOUNT_SEED_VERSION,
    DEFAULT_BURN_PERCENT,
    DEFAULT_EXEMPTION_THRESHOLD,
    DEFAULT_LAMPORTS_PER_BYTE_YEAR,
    EVM_LOADER_ADDRESS,
)
from ..exceptions import ConfigurationError, InvalidPubkeyError
from ..logger import get_logger
from ..pubkey import Pubkey
from ..rent import RentConfig

logger = get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# -- Network ------------------------------------------------------------

@dataclass
class NetworkConfig:
    """[network] section: per-network node endpoints."""
    name: str = "localnet"
    svm_node: Dict[str, str] = field(default_factory=lambda: {
        "localnet": "http://127.0.0.1:8899",
        "devnet": "https://api.devnet.solana.com",
        "mainnet": "https://api.mainnet-beta.solana.com",
    })
    evm_node: Dict[str, str] = field(default_factory=lambda: {
        "localnet": "http://127.0.0.1:9090/solana",
        "devnet": "https://devnet.neonevm.org",
        "mainnet": "https://neon-proxy-mainnet.solana.p2p.org",
    })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkConfig":
        defaults = cls()
        return cls(
            name=data.get("name", defaults.name),
            svm_node={**defaults.svm_node, **data.get("svm_node", {})},
            evm_node={**defaults.evm_node, **data.get("evm_node", {})},
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SYSBRIDGE_NETWORK"):
            self.name = v

    @property
    def svm_endpoint(self) -> str:
        try:
            return self.svm_node[self.name]
        except KeyError:
            raise ConfigurationError(f"No svm_node endpoint for network {self.name!r}") from None

    @property
    def evm_endpoint(self) -> str:
        try:
            return self.evm_node[self.name]
        except KeyError:
            raise ConfigurationError(f"No evm_node endpoint for network {self.name!r}") from None


# -- Rent ---------------------------------------------------------------

@dataclass
class RentSectionConfig:
    """[rent] section: parameters the in-process ledger publishes in its sysvar."""
    lamports_per_byte_year: int = DEFAULT_LAMPORTS_PER_BYTE_YEAR
    exemption_threshold: float = DEFAULT_EXEMPTION_THRESHOLD
    burn_percent: int = DEFAULT_BURN_PERCENT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RentSectionConfig":
        return cls(
            lamports_per_byte_year=data.get("lamports_per_byte_year", DEFAULT_LAMPORTS_PER_BYTE_YEAR),
            exemption_threshold=float(data.get("exemption_threshold", DEFAULT_EXEMPTION_THRESHOLD)),
            burn_percent=data.get("burn_percent", DEFAULT_BURN_PERCENT),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SYSBRIDGE_RENT_LAMPORTS_PER_BYTE_YEAR"):
            self.lamports_per_byte_year = int(v)
        if v := os.environ.get("SYSBRIDGE_RENT_EXEMPTION_THRESHOLD"):
            self.exemption_threshold = float(v)
        if v := os.environ.get("SYSBRIDGE_RENT_BURN_PERCENT"):
            self.burn_percent = int(v)

    def to_rent_config(self) -> RentConfig:
        try:
            return RentConfig(
                lamports_per_byte_year=self.lamports_per_byte_year,
                exemption_threshold=self.exemption_threshold,
                burn_percent=self.burn_percent,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid [rent] section: {e}") from e


# -- Bridge -------------------------------------------------------------

@dataclass
class BridgeConfig:
    """[bridge] section."""
    evm_loader_id: str = EVM_LOADER_ADDRESS
    account_seed_version: int = ACCOUNT_SEED_VERSION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeConfig":
        return cls(
            evm_loader_id=data.get("evm_loader_id", EVM_LOADER_ADDRESS),
            account_seed_version=data.get("account_seed_version", ACCOUNT_SEED_VERSION),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SYSBRIDGE_EVM_LOADER_ID"):
            self.evm_loader_id = v

    @property
    def evm_loader_pubkey(self) -> Pubkey:
        try:
            return Pubkey(self.evm_loader_id)
        except InvalidPubkeyError as e:
            raise ConfigurationError(f"Invalid [bridge] evm_loader_id: {e}") from e


# -- Logging ------------------------------------------------------------

@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(level=str(data.get("level", "INFO")).upper())

    def apply_env(self) -> None:
        if v := os.environ.get("SYSBRIDGE_LOG_LEVEL"):
            self.level = v.upper()


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class SysbridgeConfig:
    """
    Unified harness configuration.

    Loads every section of sysbridge.toml and applies environment variable
    overrides.
    """
    network: NetworkConfig = field(default_factory=NetworkConfig)
    rent: RentSectionConfig = field(default_factory=RentSectionConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SysbridgeConfig":
        return cls(
            network=NetworkConfig.from_dict(data.get("network", {})),
            rent=RentSectionConfig.from_dict(data.get("rent", {})),
            bridge=BridgeConfig.from_dict(data.get("bridge", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "SysbridgeConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults with environment overrides applied.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Malformed config file {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        self.network.apply_env()
        self.rent.apply_env()
        self.bridge.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Validate all sections.

        Raises:
            ConfigurationError: on invalid config
        """
        if self.logging.level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        if not 0 <= self.bridge.account_seed_version <= 255:
            raise ConfigurationError(
                f"account_seed_version must fit in one byte: {self.bridge.account_seed_version}"
            )
        self.network.svm_endpoint
        self.network.evm_endpoint
        self.bridge.evm_loader_pubkey
        self.rent.to_rent_config()
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": {
                "name": self.network.name,
                "svm_node": dict(self.network.svm_node),
                "evm_node": dict(self.network.evm_node),
            },
            "rent": {
                "lamports_per_byte_year": self.rent.lamports_per_byte_year,
                "exemption_threshold": self.rent.exemption_threshold,
                "burn_percent": self.rent.burn_percent,
            },
            "bridge": {
                "evm_loader_id": self.bridge.evm_loader_id,
                "account_seed_version": self.bridge.account_seed_version,
            },
            "logging": {
                "level": self.logging.level,
            },
        }


def load_config(path: Optional[str] = None) -> SysbridgeConfig:
    """
    Load harness configuration.

    Resolution order:
        1. Explicit *path* argument
        2. SYSBRIDGE_CONFIG env var
        3. ./sysbridge.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("SYSBRIDGE_CONFIG", "sysbridge.toml")

    return SysbridgeConfig.from_file(path)
