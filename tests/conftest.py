import itertools

import pytest


class FakeTimer:
    """threading.Timer stand-in driven by ManualClock."""

    def __init__(self, clock, interval, function, args=None, kwargs=None):
        self.clock = clock
        self.delay_ms = int(round(interval * 1000))
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.due = None
        self.seq = None
        self.cancelled = False
        self.fired = False

    def start(self):
        self.due = self.clock.now + self.delay_ms
        self.seq = next(self.clock.seq)
        self.clock.timers.append(self)

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fired = True
        self.function(*self.args, **self.kwargs)


class ManualClock:
    """Fires fake timers in due-time order, ties in start order."""

    def __init__(self):
        self.now = 0
        self.seq = itertools.count()
        self.timers = []

    def monotonic(self):
        return self.now / 1000.0

    def timer_factory(self, interval, function, args=None, kwargs=None):
        return FakeTimer(self, interval, function, args, kwargs)

    def live(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, ms):
        target = self.now + ms
        while True:
            due = [t for t in self.live() if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.now = timer.due
            timer.fire()
        self.now = target


class RecordingDisplay:
    """Array consumer recording every primitive call."""

    def __init__(self):
        self.calls = []

    def activate(self, position, kind):
        self.calls.append(('activate', position, kind))

    def flash_all(self):
        self.calls.append(('flash',))

    def reset_all(self):
        self.calls.append(('reset',))

    def take(self):
        calls, self.calls = self.calls, []
        return calls


class FakePublisher:

    def __init__(self, device_id='WALL1'):
        self.device_info = {'id': device_id}
        self.items = []

    def enqueue(self, item):
        self.items.append(item)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def publisher():
    return FakePublisher()
