"""
Auth package: HS256 token codec (standard library only), configuration, admin user store and FastAPI glue.
"""
from . import errors, jwt, config

__all__ = ["errors", "jwt", "config"]
