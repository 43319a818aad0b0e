"""Engine, sessions and transactions for the graph store."""

from typing import Any, Generator, Optional
from contextlib import contextmanager
import json
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from .. import config
from ..exceptions import StoreFailure, ConstraintViolation
from .models import Base

logger = logging.getLogger(__name__)


def encode_value(value: Any) -> str:
    """Encode a property value for storage and equality matching."""
    return json.dumps(value, sort_keys=True)


def decode_value(value: str) -> Any:
    """Inverse of :func:`encode_value`."""
    return json.loads(value)


class GraphStore(object):
    """
    Connection to the database holding the graph.

    The engine and session factory are thread safe; every call to
    :meth:`transaction` gets its own session, so a single instance can be
    shared by all request handlers in a process.
    """

    def __init__(self, uri: str, echo: bool = False) -> None:
        """Create the engine for ``uri``."""
        connect_args = {'check_same_thread': False} \
            if uri.startswith('sqlite') else {}
        self.engine: Engine = create_engine(uri, echo=echo,
                                            connect_args=connect_args)
        self._sessionmaker = sessionmaker(bind=self.engine, autoflush=False)

    @classmethod
    def from_config(cls) -> 'GraphStore':
        """Create a store using ``CONNECT_STORE_URI`` from the config."""
        return cls(config.STORE_URI, echo=config.STORE_ECHO)

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """
        Context manager for a database transaction.

        Commits when the block exits normally and rolls back otherwise.
        Database errors are re-raised as :class:`.StoreFailure`.
        """
        session = self._sessionmaker()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            logger.warning('Constraint violated, rolling back: %s', str(e))
            session.rollback()
            raise ConstraintViolation(f'Constraint violated: {e}') from e
        except SQLAlchemyError as e:
            logger.warning('Commit failed, rolling back: %s', str(e))
            session.rollback()
            raise StoreFailure(f'Store query failed: {e}') from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        """Create all tables in the database."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreFailure(f'Could not create tables: {e}') from e

    def drop_all(self) -> None:
        """Drop all tables in the database."""
        try:
            Base.metadata.drop_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreFailure(f'Could not drop tables: {e}') from e

    def is_available(self) -> bool:
        """Check our connection to the database."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text('SELECT 1'))
        except Exception as e:
            logger.error('Encountered an error talking to database: %s', e)
            return False
        return True

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()
