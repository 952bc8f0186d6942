"""
Declarative base shared by every ORM model of the Tool Navigator service.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
