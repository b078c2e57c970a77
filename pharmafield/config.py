"""Runtime settings read from the environment.

Environment variables override all defaults:

    PHARMAFIELD_DATA_DIR              directory holding the persisted arrays
    PHARMAFIELD_GROUP_STATUS_POLICY   "last_wins" (default) or "consensus"
    PHARMAFIELD_LOG_LEVEL             logging level name
    PHARMAFIELD_CURRENCY              label shown after money values
    PHARMAFIELD_REPRESENTATIVE        name printed under the representative signature
    PHARMAFIELD_RECEIVER              name printed under the receiver signature
    PHARMAFIELD_DEMO_SEED / PHARMAFIELD_DEMO_SIZE   dashboard demo dataset
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pharmafield.errors import ConfigError

STATUS_POLICIES = ("consensus", "last_wins")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    group_status_policy: str = "last_wins"
    log_level: str = "INFO"
    currency: str = "ريال"
    representative_name: str = "محمد أحمد"
    receiver_name: str = "أحمد محمد"
    demo_seed: int = 42
    demo_size: int = 500

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        policy = env.get("PHARMAFIELD_GROUP_STATUS_POLICY", cls.group_status_policy).strip().lower()
        if policy not in STATUS_POLICIES:
            raise ConfigError(
                f"PHARMAFIELD_GROUP_STATUS_POLICY must be one of {', '.join(STATUS_POLICIES)}, got {policy!r}"
            )
        try:
            demo_seed = int(env.get("PHARMAFIELD_DEMO_SEED", cls.demo_seed))
            demo_size = int(env.get("PHARMAFIELD_DEMO_SIZE", cls.demo_size))
        except ValueError as exc:
            raise ConfigError(f"Invalid demo dataset setting: {exc}") from exc

        return cls(
            data_dir=Path(env.get("PHARMAFIELD_DATA_DIR", str(cls.data_dir))),
            group_status_policy=policy,
            log_level=env.get("PHARMAFIELD_LOG_LEVEL", cls.log_level).upper(),
            currency=env.get("PHARMAFIELD_CURRENCY", cls.currency),
            representative_name=env.get("PHARMAFIELD_REPRESENTATIVE", cls.representative_name),
            receiver_name=env.get("PHARMAFIELD_RECEIVER", cls.receiver_name),
            demo_seed=demo_seed,
            demo_size=demo_size,
        )


def configure_logging(level="INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Safe to call on every Streamlit rerun.
    """
    logger = logging.getLogger("pharmafield")
    logger.setLevel(level)
    if not any(getattr(h, "_pharmafield", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._pharmafield = True
        logger.addHandler(handler)
    return logger
