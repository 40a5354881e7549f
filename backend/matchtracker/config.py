import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def _env_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(
            "Invalid %s value %r; defaulting to %d", env_var, raw, default
        )
        return default
    if value <= 0:
        logger.warning("%s must be positive; defaulting to %d", env_var, default)
        return default
    return value


def _canon_best_of(val: int) -> int:
    """
    Normalize the default match length:
      - must be odd so that a strict majority of sets exists
      - falls back to best-of-5 otherwise
    """
    if val % 2 == 0:
        logger.warning("TT_BEST_OF must be odd; defaulting to 5 (got %d)", val)
        return 5
    return val


def _canon_level(val):
    val = (val or "INFO").strip().upper()
    if val not in logging.getLevelNamesMapping():
        return "INFO"
    return val


DEFAULT_BEST_OF = _canon_best_of(_env_int("TT_BEST_OF", 5))
DEFAULT_POINTS_TO = _env_int("TT_POINTS_TO", 11)
DEFAULT_WIN_BY = _env_int("TT_WIN_BY", 2)

LOG_LEVEL = _canon_level(os.getenv("LOG_LEVEL"))


@dataclass(frozen=True)
class ScoringConfig:
    """Rules a single match is scored with."""

    best_of: int = DEFAULT_BEST_OF
    points_to: int = DEFAULT_POINTS_TO
    win_by: int = DEFAULT_WIN_BY

    @property
    def deuce_at(self) -> int:
        # Both sides on this score or above: service changes every point.
        return self.points_to - 1


def configure_logging(level: str | None = None) -> None:
    """Install a basic stream handler for scripts run outside an app server."""

    logging.basicConfig(
        level=_canon_level(level or LOG_LEVEL),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
