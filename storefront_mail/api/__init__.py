"""
API module.
Contains the FastAPI application, status routes and admin auth.
"""

from storefront_mail.api.main import create_app, run

__all__ = ["create_app", "run"]
