from .server_config import ServerConfig, load_server_config

__all__ = ["ServerConfig", "load_server_config"]
