"""League configuration management."""

import os
from functools import lru_cache
from pathlib import Path

from .schemas import LeagueConfig
from .utils import load_json

CONFIG_ENV_VAR = 'ULTIFANTASY_CONFIG'
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'data' / 'league_config.json'


@lru_cache(maxsize=1)
def get_config() -> LeagueConfig:
    """
    Load league configuration.

    Reads the file named by ULTIFANTASY_CONFIG, else data/league_config.json.
    When neither exists the schema defaults are used. Configuration is cached
    after first load.

    Returns:
        LeagueConfig object with validated settings

    Raises:
        ValueError: If the config file has invalid structure

    Example:
        from ultifantasy.config import get_config
        config = get_config()
        print(f"Salary cap: {config.salary_cap}")
    """
    config_path = Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))
    if not config_path.exists():
        return LeagueConfig()
    return load_json(config_path, schema=LeagueConfig)


def get_salary_cap() -> float:
    """Get the salary cap from config."""
    return get_config().salary_cap


def get_max_transfers_per_week() -> int:
    """Get the weekly transfer limit from config."""
    return get_config().max_transfers_per_week


def get_transfer_window_bypass_users() -> list[str]:
    """Get user ids allowed to transfer while the window is closed."""
    return get_config().transfer_window_bypass_users


def can_bypass_transfer_window(user_id: str | None) -> bool:
    if not user_id:
        return False
    return user_id in get_transfer_window_bypass_users()


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file is modified during runtime
    and you need to reload it.
    """
    get_config.cache_clear()
