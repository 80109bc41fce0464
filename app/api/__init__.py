from . import compress

routers = [
    compress.router,
]

__all__ = [
    "routers",
]
