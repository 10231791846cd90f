import json
import os
from dataclasses import dataclass, asdict, fields, replace
from typing import Optional

CONFIG_DIR = os.getenv("DTC_CONFIG_DIR", os.path.join(os.path.expanduser("~"), ".dtc"))
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.json")

DTC_HEADER = "Data-Tracker-Chain"

# env var -> (field, converter)
ENV_OVERRIDES = {
    "DTC_DIFFICULTY": ("difficulty", int),
    "DTC_MAX_ATTEMPTS": ("max_attempts", int),
    "DTC_WORKERS": ("workers", int),
    "DTC_CHUNK_SIZE": ("chunk_size", int),
    "DTC_HEADER_NAME": ("header_name", str),
}


@dataclass(frozen=True)
class TrackerConfig:
    difficulty: int = 8               # leading zero bits of the sha256 digest
    max_attempts: int = 4_194_304     # nonce candidates before giving up
    workers: int = 1                  # 1 = sequential search
    chunk_size: int = 65_536          # nonces per shard when workers > 1
    header_name: str = DTC_HEADER

    def __post_init__(self):
        if not 0 <= self.difficulty <= 256:
            raise ValueError(f"difficulty must be within 0..256, got {self.difficulty}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
        if self.workers < 1:
            raise ValueError(f"workers must be positive, got {self.workers}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if not self.header_name:
            raise ValueError("header_name must not be empty")

    def save(self, path: Optional[str] = None):
        path = path or CONFIG_PATH
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)

    @staticmethod
    def load(path: Optional[str] = None) -> "TrackerConfig":
        """
        Read the config file, writing the defaults first if it does not exist.
        Unknown keys are rejected so a typo cannot silently fall back to a default.
        """
        path = path or CONFIG_PATH
        if not os.path.exists(path):
            cfg = TrackerConfig()
            cfg.save(path)
            return cfg
        with open(path, "r") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"{path} must hold a JSON object")

        known = {f.name for f in fields(TrackerConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys in {path}: {', '.join(unknown)}")
        try:
            return TrackerConfig(**data)
        except TypeError as e:
            raise ValueError(f"bad config value in {path}: {e}") from None

    @staticmethod
    def from_env(base: Optional["TrackerConfig"] = None) -> "TrackerConfig":
        """Apply DTC_* environment overrides on top of `base` (defaults if None)."""
        base = base or TrackerConfig()
        changes = {}
        for var, (name, conv) in ENV_OVERRIDES.items():
            raw = os.getenv(var)
            if raw is None or raw == "":
                continue
            try:
                changes[name] = conv(raw)
            except ValueError:
                raise ValueError(f"{var} must be {conv.__name__}, got {raw!r}") from None
        return replace(base, **changes)


DEFAULT_CONFIG = TrackerConfig()
