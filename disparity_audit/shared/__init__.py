from disparity_audit.shared.config import (
    DisparityThresholds,
    Settings,
    get_config,
    get_default_thresholds,
    reload_config,
)

__all__ = [
    "get_config",
    "reload_config",
    "get_default_thresholds",
    "Settings",
    "DisparityThresholds",
]
