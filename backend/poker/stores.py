"""Keyed stores for Room and Participant records.

Each store is a thin adapter over a SQLAlchemy session exposing the keyed-store
contract the services rely on: ``put``, ``get``, ``delete`` and
``query_by_partition``. Every write is its own commit (last write wins on a
key). The batch writes ``put_all``/``delete_all`` commit once, so a multi-record
change lands in a single transaction where the database allows it.

Transient database failures are rolled back and surfaced as
:class:`poker.errors.StoreUnavailable`; nothing here retries.
"""

import logging
import time
from contextlib import contextmanager

from sqlalchemy.exc import InterfaceError, OperationalError

from poker.errors import StoreUnavailable
from poker.models import Participant, Room

log = logging.getLogger(__name__)


class KeyedStore:
    model = None
    key_columns = ()
    partition_column = None
    order_by = ()

    def __init__(self, session):
        self.session = session

    @contextmanager
    def _store_call(self, op):
        try:
            yield
        except (OperationalError, InterfaceError) as exc:
            self.session.rollback()
            log.warning(f"[store-unavailable] table={self.model.__tablename__} op={op} error={exc}")
            raise StoreUnavailable(f'{self.model.__tablename__} store unavailable') from exc
        except Exception:
            self.session.rollback()
            raise

    def _key_filter(self, key):
        values = key if isinstance(key, tuple) else (key,)
        if len(values) != len(self.key_columns):
            raise ValueError(f'{self.model.__name__} key needs {len(self.key_columns)} part(s), got {key!r}')
        return dict(zip(self.key_columns, values))

    def _query(self):
        return self.session.query(self.model)

    def get(self, key):
        with self._store_call('get'):
            return self._query().filter_by(**self._key_filter(key)).one_or_none()

    def put(self, item):
        with self._store_call('put'):
            merged = self.session.merge(item)
            self.session.commit()
            return merged

    def put_all(self, items):
        with self._store_call('put_all'):
            merged = [self.session.merge(item) for item in items]
            self.session.commit()
            return merged

    def delete(self, key):
        """Delete by key; returns True when a record was removed."""
        with self._store_call('delete'):
            removed = self._query().filter_by(**self._key_filter(key)).delete(synchronize_session='fetch')
            self.session.commit()
            return removed > 0

    def delete_all(self, keys):
        with self._store_call('delete_all'):
            removed = 0
            for key in keys:
                removed += self._query().filter_by(**self._key_filter(key)).delete(synchronize_session='fetch')
            self.session.commit()
            return removed

    def query_by_partition(self, partition_key):
        with self._store_call('query'):
            query = self._query().filter_by(**{self.partition_column: partition_key})
            if self.order_by:
                query = query.order_by(*self.order_by)
            return query.all()

    def scan(self):
        with self._store_call('scan'):
            query = self._query()
            if self.order_by:
                query = query.order_by(*self.order_by)
            return query.all()


class RoomStore(KeyedStore):
    """Rooms keyed by code. Expired rooms read as absent."""

    model = Room
    key_columns = ('room_code',)
    partition_column = 'room_code'
    order_by = (Room.created_at, Room.room_code)

    def __init__(self, session, clock=time.time):
        super().__init__(session)
        self.clock = clock

    def get(self, key):
        room = super().get(key)
        if room is not None and room.is_expired(int(self.clock())):
            return None
        return room

    def scan(self):
        now = int(self.clock())
        return [r for r in super().scan() if not r.is_expired(now)]

    def purge_expired(self, participants, now):
        """Remove expired rooms and their participants; returns rooms removed."""
        with self._store_call('purge'):
            expired = self._query().filter(Room.expires_at <= now).all()
            codes = [r.room_code for r in expired]
        for code in codes:
            participants.delete_all([p.key for p in participants.query_by_partition(code)])
        removed = self.delete_all(codes)
        log.info(f"[room-purge] removed={removed} now={now}")
        return removed


class ParticipantStore(KeyedStore):
    """Participants keyed by (room_code, member_id), partitioned by room."""

    model = Participant
    key_columns = ('room_code', 'member_id')
    partition_column = 'room_code'
    order_by = (Participant.joined_at, Participant.member_id)
