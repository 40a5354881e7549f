from .base import PersistenceGateway
from .sql import SqlAlchemyGateway

__all__ = ["PersistenceGateway", "SqlAlchemyGateway"]
