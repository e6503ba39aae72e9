from orderledger.core.config import ReconcileConfig, load_reconcile_config_from_env

__all__ = ["ReconcileConfig", "load_reconcile_config_from_env"]
