"""
SQLAlchemy database models.
"""

from agrihub.models.auth import User, UserRole, UserSession
from agrihub.models.catalog import Product
from agrihub.models.audit import AuditLog, UploadHistory

__all__ = [
    "User",
    "UserRole",
    "UserSession",
    "Product",
    "AuditLog",
    "UploadHistory",
]
