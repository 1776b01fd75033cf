# Library API Models
from library_api.models.base import BaseModel
from library_api.models.book import Book
from library_api.models.category import Category
from library_api.models.token_blacklist import TokenBlacklist
from library_api.models.user import ADMIN_ROLES, User, UserRole

__all__ = [
    "ADMIN_ROLES",
    "BaseModel",
    "Book",
    "Category",
    "TokenBlacklist",
    "User",
    "UserRole",
]
