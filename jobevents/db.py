"""
------------
jobevents.db
------------

Relational database access for the event store.

The event store works with plain SQL statements that use ``?`` as positional
placeholders. :class:`Database` executes those statements through SQLAlchemy:
each placeholder is turned into a typed bind parameter, so the values are always
bound by the driver and rendered the same way on every dialect.

The schema of the tables used by the store is declared here as SQLAlchemy models.
"""
from datetime import datetime
from logging import getLogger

from sqlalchemy import (Column, Integer, String, Text, DateTime, LargeBinary,
                        bindparam, column, create_engine as sa_create_engine, text)
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import NullType

from jobevents.model import utc_naive


log = getLogger(__name__)


Base = declarative_base()


class TestEventRecord(Base):
    """SQLAlchemy model of a persisted test event.
    """
    __tablename__ = 'test_events'

    event_id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, nullable=False, index=True)
    run_id = Column(Integer, nullable=False)
    test_name = Column(String(64), nullable=False)
    test_attempt = Column(Integer, nullable=False, default=0)
    test_step_label = Column(String(64), nullable=False)
    event_name = Column(String(32), nullable=False, index=True)
    target_id = Column(String(64), nullable=True)
    payload = Column(Text, nullable=True)
    emit_time = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return 'TestEventRecord<%s %s @ %s>' % (self.event_id, self.event_name, self.emit_time)


class FrameworkEventRecord(Base):
    """SQLAlchemy model of a persisted framework event.
    """
    __tablename__ = 'framework_events'

    event_id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, nullable=False, index=True)
    event_name = Column(String(32), nullable=False, index=True)
    payload = Column(Text, nullable=True)
    emit_time = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return 'FrameworkEventRecord<%s %s @ %s>' % (self.event_id, self.event_name, self.emit_time)


class JobRecord(Base):
    """SQLAlchemy model of a job. The event store only updates the job ``state``.
    """
    __tablename__ = 'jobs'

    job_id = Column(Integer, primary_key=True, autoincrement=False)
    state = Column(Integer, nullable=False, default=0)
    name = Column(String(64), nullable=True)
    requestor = Column(String(32), nullable=True)
    request_time = Column(DateTime, nullable=True)

    def __repr__(self):
        return 'Job<%s state=%s>' % (self.job_id, self.state)


def param_type(value):
    """Resolves the SQLAlchemy type used to bind a statement parameter.

    Supported values are ``str``, ``int`` (including ``IntEnum``), :class:`datetime.datetime`,
    ``bytes`` and ``None``. Any other value raises ``TypeError``.
    """
    if value is None:
        return NullType()
    if isinstance(value, str):
        return String()
    if isinstance(value, int):
        return Integer()
    if isinstance(value, datetime):
        return DateTime()
    if isinstance(value, bytes):
        return LargeBinary()
    raise TypeError('unsupported statement parameter type %s' % type(value).__name__)


def _plain(value):
    # IntEnum and str subclasses are bound as their plain values, aware datetimes as naive UTC
    if isinstance(value, datetime):
        return utc_naive(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return int(value)
    if isinstance(value, str):
        return str(value)
    return value


def bind_statement(statement, params=None):
    """Builds a SQLAlchemy :func:`sqlalchemy.text` clause from a statement with ``?``
    placeholders.

    :param statement: ``str``, SQL statement with ``?`` positional placeholders.
    :param params: ``list``, values for the placeholders, in order.

    Raises ``ValueError`` if the number of placeholders does not match the number of values.
    """
    params = list(params or [])
    parts = statement.split('?')
    if len(parts) - 1 != len(params):
        raise ValueError('statement has %d placeholders, but %d values were given' %
                         (len(parts) - 1, len(params)))
    sql = parts[0]
    binds = []
    for i, value in enumerate(params):
        name = 'p%d' % i
        sql += ':' + name + parts[i + 1]
        binds.append(bindparam(name, _plain(value), type_=param_type(value)))
    clause = text(sql)
    if binds:
        clause = clause.bindparams(*binds)
    return clause


class ResultCursor:
    """Iterable over the result rows of a query.

    Holds the connection used by the query until :meth:`close` is called.
    """
    def __init__(self, connection, result):
        self.connection = connection
        self.result = result

    def __iter__(self):
        return iter(self.result)

    def close(self):
        """Closes the result and releases the connection.
        """
        try:
            self.result.close()
        finally:
            self.connection.close()


class Database:
    """Executes statements against a relational database.

    Every :meth:`execute` call runs in its own transaction and is committed
    immediately. There is no transaction spanning multiple statements.

    :param engine: :class:`sqlalchemy.engine.Engine`, the database engine.
    """
    def __init__(self, engine):
        self.engine = engine

    def execute(self, statement, params=None):
        """Executes an insert or update statement and commits it.

        :param statement: ``str``, statement with ``?`` placeholders.
        :param params: ``list``, values for the placeholders.
        """
        clause = bind_statement(statement, params)
        with self.engine.begin() as connection:
            connection.execute(clause)

    def query(self, statement, params=None, columns=None):
        """Executes a select statement.

        :param statement: ``str``, select statement with ``?`` placeholders.
        :param params: ``list``, values for the placeholders.
        :param columns: ``list`` of ``(name, type)`` tuples describing the selected columns,
            in order. The types are used to convert the result values.

        Returns a :class:`ResultCursor`. The caller must close it.
        """
        clause = bind_statement(statement, params)
        if columns:
            clause = clause.columns(*[column(name, type_) for name, type_ in columns])
        connection = self.engine.connect()
        try:
            result = connection.execute(clause)
        except Exception:
            connection.close()
            raise
        return ResultCursor(connection, result)

    def create_schema(self):
        """Creates the event store tables, if they do not exist.
        """
        Base.metadata.create_all(self.engine)

    def dispose(self):
        """Releases all connections held by the engine.
        """
        self.engine.dispose()


def create_engine(db_url, verbose=False):
    """Creates new SQLAlchemy engine.

    SQLite connections are allowed to be used from any thread, and in-memory SQLite
    databases share a single connection so that every thread sees the same database.

    :param db_url: ``str``, the database URL in SQLAlchemy form.
    :param verbose: ``bool``, ``True`` to log every statement executed by the engine.

    Returns :class:`sqlalchemy.engine.Engine`.
    """
    url = make_url(db_url)
    kwargs = {}
    if url.get_backend_name() == 'sqlite':
        kwargs['connect_args'] = {'check_same_thread': False}
        if url.database in (None, '', ':memory:'):
            kwargs['poolclass'] = StaticPool
    log.debug('Creating database engine for %s', url.render_as_string(hide_password=True))
    return sa_create_engine(url, echo=verbose, **kwargs)


def create_database(db_url, verbose=False):
    """Creates new :class:`Database` for the given URL and creates the schema.
    """
    database = Database(create_engine(db_url, verbose=verbose))
    database.create_schema()
    return database
