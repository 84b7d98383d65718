"""
Administrator authentication.
"""

from .tokens import AdminTokenService
from .dependencies import bearer_token, require_admin

__all__ = ['AdminTokenService', 'bearer_token', 'require_admin']
