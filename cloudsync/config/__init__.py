from cloudsync.config.loader import load_config, load_env_defaults

__all__ = ["load_config", "load_env_defaults"]
