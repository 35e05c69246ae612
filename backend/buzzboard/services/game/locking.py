import threading
import weakref
from contextlib import contextmanager

from buzzboard import db


# A lobby's lock lives only while some thread references it
_lobby_locks: 'weakref.WeakValueDictionary[int, threading.Lock]' = weakref.WeakValueDictionary()
_registry_lock = threading.Lock()


def _lock_for(lobby_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _lobby_locks.get(lobby_id)
        if lock is None:
            lock = threading.Lock()
            _lobby_locks[lobby_id] = lock
        return lock


@contextmanager
def lobby_transaction(lobby_id: int):
    """Serialize writers of one lobby and commit their changes as one unit.

    Not reentrant: service helpers called from inside a transaction must not
    open another one for the same lobby.
    """
    lock = _lock_for(lobby_id)
    with lock:
        # Rows read before we held the lock may be stale
        db.session.expire_all()
        try:
            yield
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
