import weakref

from acid.timer import TimerManager


class FakeClock:
    def __init__(self, now=1000):
        self.now = now

    def __call__(self):
        return self.now


class RecordingManager(TimerManager):
    """Timer manager that records every call of the front-insert hook."""

    def __init__(self, clock):
        super().__init__(clock=clock)
        self.hits = []

    def on_insert_at_front(self):
        self.hits.append(self.has_timer())


def make():
    clock = FakeClock()
    return clock, TimerManager(clock=clock)


def test_expired_in_deadline_order():
    clock, mgr = make()
    fired = []
    for ms in (30, 10, 20):
        mgr.add_timer(ms, lambda ms=ms: fired.append(ms))
    clock.now += 30
    for callback in mgr.expired_callbacks():
        callback()
    assert fired == sorted(fired)
    assert set(fired) == {10, 20, 30}
    assert not mgr.has_timer()


def test_nothing_expires_early():
    clock, mgr = make()
    mgr.add_timer(50, lambda: None)
    clock.now += 49
    assert mgr.expired_callbacks() == []
    assert mgr.has_timer()


def test_expires_exactly_at_deadline():
    clock, mgr = make()
    callback = lambda: None  # noqa: E731
    mgr.add_timer(50, callback)
    clock.now += 50
    assert mgr.expired_callbacks() == [callback]


def test_next_timeout():
    clock, mgr = make()
    assert mgr.next_timeout() is None
    mgr.add_timer(100, lambda: None)
    assert mgr.next_timeout() == 100
    clock.now += 150
    assert mgr.next_timeout() == 0


def test_recurring_is_rescheduled():
    clock, mgr = make()
    callback = lambda: None  # noqa: E731
    timer = mgr.add_timer(10, callback, recurring=True)
    clock.now += 10
    assert mgr.expired_callbacks() == [callback]
    assert mgr.has_timer()
    assert timer.deadline == clock.now + 10


def test_cancel():
    clock, mgr = make()
    timer = mgr.add_timer(10, lambda: None)
    assert timer.cancel() is True
    assert not mgr.has_timer()
    clock.now += 20
    assert mgr.expired_callbacks() == []


def test_reset_from_now():
    clock, mgr = make()
    timer = mgr.add_timer(100, lambda: None)
    clock.now += 60
    assert timer.reset(100, True) is True
    assert timer.deadline == clock.now + 100


def test_reset_keeps_start():
    clock, mgr = make()
    start = clock.now
    timer = mgr.add_timer(100, lambda: None)
    assert timer.reset(40, False)
    assert timer.deadline == start + 40
    assert timer.ms == 40


def test_reset_same_interval_is_noop():
    clock, mgr = make()
    timer = mgr.add_timer(100, lambda: None)
    before = timer.deadline
    clock.now += 30
    assert timer.reset(100, False) is True
    assert timer.deadline == before


def test_reset_after_cancel_rearms():
    clock, mgr = make()
    timer = mgr.add_timer(100, lambda: None)
    timer.cancel()
    assert timer.reset(20, True)
    assert mgr.has_timer()
    clock.now += 20
    assert mgr.expired_callbacks() == [timer.callback]


def test_refresh():
    clock, mgr = make()
    timer = mgr.add_timer(100, lambda: None)
    clock.now += 70
    assert timer.refresh() is True
    assert timer.deadline == clock.now + 100


def test_refresh_after_cancel_fails():
    clock, mgr = make()
    timer = mgr.add_timer(100, lambda: None)
    timer.cancel()
    assert timer.refresh() is False
    assert not mgr.has_timer()


def test_condition_timer():
    class Token:
        pass

    clock, mgr = make()
    fired = []
    alive = Token()
    gone = Token()
    gone_ref = weakref.ref(gone)
    del gone
    mgr.add_condition_timer(10, lambda: fired.append("alive"), weakref.ref(alive))
    mgr.add_condition_timer(10, lambda: fired.append("gone"), gone_ref)
    clock.now += 10
    for callback in mgr.expired_callbacks():
        callback()
    assert fired == ["alive"]


def test_on_insert_at_front_hook():
    mgr = RecordingManager(FakeClock())
    TimerManager.add_timer(mgr, 100, lambda: None)
    first = len(mgr.hits)
    assert first == 1
    TimerManager.add_timer(mgr, 50, lambda: None)
    assert len(mgr.hits) == first
    assert TimerManager.next_timeout(mgr) == 50
    TimerManager.add_timer(mgr, 10, lambda: None)
    assert len(mgr.hits) == first + 1
    TimerManager.add_timer(mgr, 500, lambda: None)
    assert len(mgr.hits) == first + 1
    assert all(mgr.hits)