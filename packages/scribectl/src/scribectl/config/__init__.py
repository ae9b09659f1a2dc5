from .loader import ScribeConfig, load_config

__all__ = ["ScribeConfig", "load_config"]
