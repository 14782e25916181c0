from contextlib import AbstractContextManager

from room_control_core.domain.errors import StorageError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from room_control_server.adapters.db.session import get_session_factory


class SqlAlchemyUoW(AbstractContextManager):
    """
    One session per unit of work: commit on success, roll back on error.

    Any SQLAlchemyError leaving the block, including one raised by the commit
    itself, is re-raised as StorageError so callers never see driver errors.
    """

    def __init__(self, session: Session | None = None, session_factory: sessionmaker | None = None):
        self._external = session is not None
        self._session_factory = session_factory
        self._session = session

    @property
    def session(self) -> Session:
        if self._session is None:
            factory = self._session_factory or get_session_factory()
            self._session = factory()
        return self._session

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, _tb):
        if self._external or self._session is None:
            if isinstance(exc_val, SQLAlchemyError):
                raise StorageError(str(exc_val)) from exc_val
            return
        try:
            if exc_type:
                self._session.rollback()
            else:
                self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageError(str(exc)) from exc
        finally:
            self._session.close()
            self._session = None
        if isinstance(exc_val, SQLAlchemyError):
            raise StorageError(str(exc_val)) from exc_val

    def reading_repo(self):
        from room_control_server.adapters.db.repository import SqlReadingRepository

        return SqlReadingRepository(self.session)

    def device_repo(self):
        from room_control_server.adapters.db.repository import SqlDeviceRepository

        return SqlDeviceRepository(self.session)

    def room_setting_repo(self):
        from room_control_server.adapters.db.repository import SqlRoomSettingRepository

        return SqlRoomSettingRepository(self.session)

    def audit_repo(self):
        from room_control_server.adapters.db.repository import SqlAuditRepository

        return SqlAuditRepository(self.session)
