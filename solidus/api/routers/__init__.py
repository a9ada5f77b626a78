"""API routers, mounted by ``solidus.api.app``."""
