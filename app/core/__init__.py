"""Core 모듈"""

from app.core.config import settings
from app.core.database import Base, session_scope
from app.core.exceptions import (
    BadRequestException,
    BaseAPIException,
    ErrorCode,
    InternalServerException,
    NotFoundException,
    StorageException,
    UnauthorizedException,
)
from app.core.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "Base",
    "session_scope",
    "ErrorCode",
    "BaseAPIException",
    "BadRequestException",
    "UnauthorizedException",
    "NotFoundException",
    "InternalServerException",
    "StorageException",
    "get_logger",
    "setup_logging",
]
