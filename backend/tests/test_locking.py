import threading

from buzzboard.services.game import locking


def test_lobby_lock_is_shared_while_held():
    lock = locking._lock_for(4242)
    assert locking._lock_for(4242) is lock
    assert locking._lock_for(4243) is not lock


def test_idle_lobby_locks_are_dropped():
    lock = locking._lock_for(4244)
    assert 4244 in locking._lobby_locks
    del lock
    assert 4244 not in locking._lobby_locks


def test_lobby_transaction_serializes_writers(app_ctx):
    order = []
    entered = threading.Event()
    release = threading.Event()

    def first():
        with app_ctx.app_context():
            with locking.lobby_transaction(7):
                entered.set()
                release.wait(5)
                order.append('first')

    def second():
        with app_ctx.app_context():
            with locking.lobby_transaction(7):
                order.append('second')

    t1 = threading.Thread(target=first)
    t1.start()
    entered.wait(5)
    t2 = threading.Thread(target=second)
    t2.start()
    t2.join(0.2)
    # Still blocked behind the first writer
    assert order == []
    release.set()
    t1.join(5)
    t2.join(5)
    assert order == ['first', 'second']
