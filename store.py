"""
Record store used by the certificate services.

A thin collection-oriented facade over the SQLAlchemy models: point lookups by
id, equality filters, partial updates and inserts. Connectivity failures are
surfaced as StoreUnavailable and never retried here.
"""
import logging
from functools import wraps

from sqlalchemy.exc import OperationalError, InterfaceError

from errors import InvalidInput, NotFound, StoreUnavailable
from models import db, Student, Course, Enrollment, CertificateAudit

COLLECTIONS = {
    'students': Student,
    'courses': Course,
    'enrollments': Enrollment,
    'certificate_audits': CertificateAudit,
}

_OPERATORS = ('==', '!=', 'in')


def _guard(fn):
    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logging.error('[STORE] %s failed: %s', fn.__name__, e)
            try:
                self.session.rollback()
            except (OperationalError, InterfaceError):
                pass
            raise StoreUnavailable('Record store is unavailable') from e
    return wrapper


class RecordStore:
    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @staticmethod
    def _model(collection):
        model = COLLECTIONS.get(collection)
        if model is None:
            raise InvalidInput(f'Unknown collection: {collection}')
        return model

    @staticmethod
    def _column(model, field):
        column = getattr(model, field, None)
        if column is None or not hasattr(column, 'property'):
            raise InvalidInput(f'Unknown field {field!r} on {model.__tablename__}')
        return column

    @_guard
    def get(self, collection, record_id):
        model = self._model(collection)
        if record_id is None or record_id == '':
            return None
        return self.session.get(model, record_id)

    @_guard
    def find(self, collection, filters=(), order_by=None):
        """Return rows matching every (field, op, value) triple."""
        model = self._model(collection)
        query = self.session.query(model)
        for field, op, value in filters:
            column = self._column(model, field)
            if op == '==':
                query = query.filter(column == value)
            elif op == '!=':
                query = query.filter(column != value)
            elif op == 'in':
                query = query.filter(column.in_(list(value)))
            else:
                raise InvalidInput(f'Unsupported operator {op!r}; expected one of {_OPERATORS}')
        if order_by:
            descending = order_by.startswith('-')
            column = self._column(model, order_by.lstrip('-'))
            query = query.order_by(column.desc() if descending else column.asc())
        return query.all()

    @_guard
    def put(self, collection, record_id, fields, commit=True):
        """Merge `fields` into an existing row; fields not given are left untouched.

        With commit=False the change is only staged; call commit() or rollback().
        """
        model = self._model(collection)
        record = self.session.get(model, record_id)
        if record is None:
            raise NotFound(f'{collection} record {record_id} not found')
        for field, value in fields.items():
            self._column(model, field)
            setattr(record, field, value)
        if commit:
            self.session.commit()
        return record

    @_guard
    def create(self, collection, fields, commit=True):
        model = self._model(collection)
        for field in fields:
            self._column(model, field)
        record = model(**fields)
        self.session.add(record)
        if commit:
            self.session.commit()
        else:
            self.session.flush()
        pk = model.__mapper__.primary_key[0].key
        return getattr(record, pk)

    @_guard
    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
