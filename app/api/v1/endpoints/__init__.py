from app.api.v1.endpoints import routes

__all__ = [
    "routes",
]
