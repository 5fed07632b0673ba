import logging
from typing import Any, Dict, Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from learnify.core.config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Engine and session factory owned by the application lifespan."""

    def __init__(self, settings: Settings):
        self.url = settings.sqlalchemy_database_uri
        self.is_sqlite = self.url.startswith("sqlite")

        if self.is_sqlite:
            self.engine = create_engine(
                self.url,
                echo=settings.db_echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                self.url,
                echo=settings.db_echo,
                poolclass=QueuePool,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                pool_recycle=1800,
                pool_pre_ping=True,
                connect_args={"connect_timeout": 5},
            )

            @event.listens_for(self.engine, "connect")
            def set_timezone(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                cursor.execute(f"SET timezone='{settings.timezone}'")
                cursor.close()

        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

        # Hide password in logs
        logger.info(f"Database configured: {self.engine.url.render_as_string(hide_password=True)}")

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database ping failed: {e}")
            return False

    def status(self) -> Dict[str, Any]:
        is_connected = self.ping()
        return {
            "isConnected": is_connected,
            "readyState": "connected" if is_connected else "disconnected",
            "dialect": self.engine.dialect.name,
            "host": self.engine.url.host,
            "name": self.engine.url.database,
            "pool": self.engine.pool.status(),
        }

    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        except Exception as e:
            logger.error(f"Database error occurred: {str(e)}")
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connections released")


# -----------------------
# Dependency for FastAPI
# -----------------------
def get_db(request: Request) -> Iterator[Session]:
    yield from request.app.state.database.session()
