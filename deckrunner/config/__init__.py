from .app_config import Config
from .env_defaults import EnvDefaults, load_env_defaults, truncate_path

__all__ = ['Config', 'EnvDefaults', 'load_env_defaults', 'truncate_path']
