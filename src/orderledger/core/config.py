from __future__ import annotations

from dataclasses import dataclass
import os

from orderledger.reconcile.matcher import MatcherConfig

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class ReconcileConfig:
    """Reconciliation settings loaded at process startup."""

    amount_tolerance_cents: int = 1
    date_tolerance_days: int = 5
    dry_run: bool = False
    force: bool = False
    distribute_tip_and_fees: bool = False
    database_url: str = "sqlite:///:memory:"
    categorizer_model: str = "gpt-4o"

    def matcher_config(self) -> MatcherConfig:
        return MatcherConfig(
            amount_tolerance_cents=self.amount_tolerance_cents,
            date_tolerance_days=self.date_tolerance_days,
        )


def require_env(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {raw!r}")


def load_reconcile_config_from_env() -> ReconcileConfig:
    """Load reconciliation config from env and validate it."""
    database_url = os.environ.get(
        "ORDERLEDGER_DATABASE_URL", "sqlite:///:memory:"
    ).strip()
    if not database_url:
        raise ValueError("ORDERLEDGER_DATABASE_URL must not be empty")

    model = os.environ.get("ORDERLEDGER_CATEGORIZER_MODEL", "gpt-4o").strip()
    if not model:
        raise ValueError("ORDERLEDGER_CATEGORIZER_MODEL must not be empty")

    return ReconcileConfig(
        amount_tolerance_cents=_int_env("ORDERLEDGER_AMOUNT_TOLERANCE_CENTS", 1),
        date_tolerance_days=_int_env("ORDERLEDGER_DATE_TOLERANCE_DAYS", 5),
        dry_run=_bool_env("ORDERLEDGER_DRY_RUN", False),
        force=_bool_env("ORDERLEDGER_FORCE", False),
        distribute_tip_and_fees=_bool_env("ORDERLEDGER_DISTRIBUTE_TIP_AND_FEES", False),
        database_url=database_url,
        categorizer_model=model,
    )
