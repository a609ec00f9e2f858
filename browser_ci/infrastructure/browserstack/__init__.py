from .tunnel import BrowserStackTunnel, check_hub, generate_local_identifier

__all__ = ["BrowserStackTunnel", "check_hub", "generate_local_identifier"]
