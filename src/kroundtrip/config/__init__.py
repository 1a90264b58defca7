from kroundtrip.config.loader import config_from_dict, load_config

__all__ = [
    "config_from_dict",
    "load_config",
]
