"""
Playback scheduler for the letter strip.

States:
  IDLE     - nothing playing (initial, after ONE_SHOT completion, after reset)
  RUNNING  - a session is dispatching events
  STOPPED  - the last session was cancelled with stop()

Modes:
  ONE_SHOT - every encoded event fires once at its own offset from play()
  LOOPING  - one character per tick (800 ms), wrapping to the first
             character with a full reset after the last one

Transitions:
  IDLE/STOPPED      + play()          -> RUNNING
  RUNNING           + play()          -> RUNNING  (old session cancelled first)
  RUNNING(ONE_SHOT) + last event      -> IDLE  (strip keeps the finished message lit)
  RUNNING           + stop()          -> STOPPED
  any               + reset()         -> IDLE
"""

import threading
import time

from letterwall.encoder import FLASH_MS, EventKind, encode, encode_char


class _Task:
    """One scheduled callback; the timer is cancelled if the session ends."""

    __slots__ = ('callback', 'args', 'timer')

    def __init__(self, callback, args):
        self.callback = callback
        self.args = args
        self.timer = None


class _Session:

    def __init__(self, message, mode):
        self.message = message
        self.mode = mode
        self.index = 0           # LOOPING: next character to play
        self.started_ms = 0      # LOOPING: clock reading at play()
        self.ticks = 0           # LOOPING: ticks fired so far
        self.pending = set()     # tasks owned by this session
        self.events_left = 0     # ONE_SHOT: event timers not yet fired


class PlaybackScheduler:
    """
    Drives an LED array consumer from encoded messages.

    Parameters:
        display         - object with activate(position, kind), flash_all(),
                          reset_all()
        tick_ms   (int) - LOOPING cadence, one character per tick
        flash_ms  (int) - how long a FLASH_ALL stays lit before reset_all()
        timer_factory   - threading.Timer compatible constructor
        clock           - monotonic seconds, used to keep LOOPING ticks
                          on a fixed grid from play()
        on_state_change (callable) - called with the new state string

    Every activation is its own timer, tracked by the session that created
    it. stop() and play() cancel all of them under the lock, and a timer
    that already woke up does nothing unless it is still registered with
    the live session.
    """

    IDLE    = 'IDLE'
    RUNNING = 'RUNNING'
    STOPPED = 'STOPPED'

    ONE_SHOT = 'ONE_SHOT'
    LOOPING  = 'LOOPING'

    def __init__(self, display, tick_ms=800, flash_ms=FLASH_MS,
                 timer_factory=threading.Timer, on_state_change=None,
                 clock=time.monotonic):
        self._display         = display
        self._tick_ms         = int(tick_ms)
        self._flash_ms        = int(flash_ms)
        self._timer_factory   = timer_factory
        self._on_state_change = on_state_change
        self._clock           = clock

        self._lock    = threading.RLock()
        self._state   = self.IDLE
        self._session = None
        self._message = ''
        self._mode    = None

    # ========== PUBLIC API ==========

    def play(self, message, mode=ONE_SHOT):
        """Start a new session, cancelling whatever is playing."""
        if mode not in (self.ONE_SHOT, self.LOOPING):
            raise ValueError(f"Unknown playback mode: {mode!r}")

        message = message or ''
        with self._lock:
            self._cancel_session_locked()
            self._display.reset_all()

            session = _Session(message, mode)
            self._session = session
            self._message = message
            self._mode = mode
            self._set_state_locked(self.RUNNING)
            print(f"[PLAYBACK] {mode} '{message}'")

            if mode == self.ONE_SHOT:
                events = encode(message)
                session.events_left = len(events)
                for event in events:
                    self._schedule_locked(session, event.offset_ms, self._fire_event, event, True)
                if not events:
                    self._complete_locked(session)
            else:
                session.started_ms = self._clock() * 1000.0
                self._schedule_locked(session, self._tick_ms, self._tick)

    def stop(self):
        """Cancel every pending timer and blank the strip. Safe to repeat."""
        with self._lock:
            had_session = self._cancel_session_locked()
            self._display.reset_all()
            if self._state == self.RUNNING:
                self._set_state_locked(self.STOPPED)
            if had_session:
                print("[PLAYBACK] Stopped")

    def reset(self):
        """Stop and forget the retained message."""
        with self._lock:
            self.stop()
            self._message = ''
            self._mode = None
            if self._state != self.IDLE:
                self._set_state_locked(self.IDLE)

    def get_state(self):
        with self._lock:
            session = self._session
            return {
                'state': self._state,
                'mode': self._mode,
                'message': self._message,
                'pending': len(session.pending) if session else 0,
                'index': session.index if session else 0,
            }

    def is_running(self):
        with self._lock:
            return self._state == self.RUNNING

    @property
    def state(self):
        with self._lock:
            return self._state

    @property
    def mode(self):
        with self._lock:
            return self._mode

    # ========== TIMERS (called while holding _lock) ==========

    def _schedule_locked(self, session, delay_ms, callback, *args):
        task = _Task(callback, args)
        task.timer = self._timer_factory(delay_ms / 1000.0, self._run_task, args=(session, task))
        task.timer.daemon = True
        session.pending.add(task)
        task.timer.start()
        return task

    def _run_task(self, session, task):
        with self._lock:
            # cancelled while waiting for the lock
            if self._session is not session or task not in session.pending:
                return
            session.pending.discard(task)
            task.callback(session, *task.args)

    def _cancel_session_locked(self):
        session = self._session
        if session is None:
            return False
        for task in session.pending:
            task.timer.cancel()
        session.pending.clear()
        self._session = None
        return True

    # ========== CALLBACKS (called while holding _lock) ==========

    def _fire_event(self, session, event, counted=False):
        if event.kind == EventKind.FLASH_ALL:
            self._display.flash_all()
            self._schedule_locked(session, self._flash_ms, self._revert_flash)
        else:
            self._display.activate(event.position, event.kind)

        if counted:
            session.events_left -= 1
            if session.events_left == 0:
                self._complete_locked(session)

    def _revert_flash(self, session):
        self._display.reset_all()

    def _tick(self, session):
        if session.index >= len(session.message):
            session.index = 0
            self._display.reset_all()

        if session.message:
            char = session.message[session.index]
            for event in encode_char(char, 0):
                self._schedule_locked(session, event.offset_ms, self._fire_event, event)
            session.index += 1

        session.ticks += 1
        next_due_ms = session.started_ms + (session.ticks + 1) * self._tick_ms
        delay_ms = max(0.0, next_due_ms - self._clock() * 1000.0)
        self._schedule_locked(session, delay_ms, self._tick)

    def _complete_locked(self, session):
        # the strip is left showing the message; only pending flash reverts
        # (still owned by the session) touch it after this
        print(f"[PLAYBACK] Finished '{session.message}'")
        self._set_state_locked(self.IDLE)

    def _set_state_locked(self, state):
        if state == self._state:
            return
        self._state = state
        if self._on_state_change:
            self._on_state_change(state)
