"""26-LED letter strip - LWS"""

import threading

from letterwall.components.base import BaseComponent
from letterwall.encoder import NUM_POSITIONS, EventKind

try:
    import RPi.GPIO as GPIO
    RPI_AVAILABLE = True
except ImportError:
    RPI_AVAILABLE = False


class LEDStrip(BaseComponent):
    """
    One LED per letter, A at position 0 through Z at position 25.

    Simulation: prints the strip to the console on every change.
    Real HW: one GPIO output pin per LED (settings 'pins', 26 BCM numbers).

    Each position is in one of four states:
      off      - dark
      on       - lit by a letter
      sequence - lit by a digit ramp step
      special  - lit by a whole-strip flash
    """

    OFF      = 'off'
    ON       = 'on'
    SEQUENCE = 'sequence'
    SPECIAL  = 'special'

    KIND_TO_STATE = {
        EventKind.LETTER: ON,
        EventKind.SEQUENCE_STEP: SEQUENCE,
    }

    # console markers per state
    MARKS = {
        OFF:      ' {} ',
        ON:       '[{}]',
        SEQUENCE: '({})',
        SPECIAL:  '*{}*',
    }

    def __init__(self, code, settings, publisher=None):
        super().__init__(code, settings, publisher)
        self.pins = list(settings.get('pins', []))
        self.echo = settings.get('echo', True)
        self._lock = threading.Lock()
        self._states = [self.OFF] * NUM_POSITIONS

        self._hw = not self.simulate and RPI_AVAILABLE and len(self.pins) == NUM_POSITIONS
        if not self.simulate and not self._hw:
            print(f"[{self.code}] GPIO unavailable or pins incomplete - running simulated")
        if self._hw:
            GPIO.setmode(GPIO.BCM)
            for pin in self.pins:
                GPIO.setup(pin, GPIO.OUT)
                GPIO.output(pin, GPIO.LOW)

    # ========== ARRAY PRIMITIVES ==========

    def activate(self, position, kind=EventKind.LETTER):
        """Light a single LED. Out-of-range positions are ignored."""
        if not 0 <= position < NUM_POSITIONS:
            return
        state = self.KIND_TO_STATE.get(kind, self.ON)
        with self._lock:
            self._states[position] = state
            self._write_pin(position, True)
            snapshot = list(self._states)
        self._changed(snapshot)

    def flash_all(self):
        with self._lock:
            self._states = [self.SPECIAL] * NUM_POSITIONS
            for position in range(NUM_POSITIONS):
                self._write_pin(position, True)
            snapshot = list(self._states)
        self._changed(snapshot)

    def reset_all(self):
        with self._lock:
            self._states = [self.OFF] * NUM_POSITIONS
            for position in range(NUM_POSITIONS):
                self._write_pin(position, False)
            snapshot = list(self._states)
        self._changed(snapshot)

    # ========== QUERY ==========

    def get_states(self):
        with self._lock:
            return list(self._states)

    def is_all_off(self):
        with self._lock:
            return all(s == self.OFF for s in self._states)

    def lit_positions(self):
        with self._lock:
            return [i for i, s in enumerate(self._states) if s != self.OFF]

    def render(self, states=None):
        """Render the strip as one console line, e.g. ' A [B] C ...'"""
        if states is None:
            states = self.get_states()
        return ''.join(
            self.MARKS[state].format(chr(ord('A') + i))
            for i, state in enumerate(states)
        )

    # ========== INTERNAL ==========

    def _write_pin(self, position, on):
        if self._hw:
            GPIO.output(self.pins[position], GPIO.HIGH if on else GPIO.LOW)

    def _changed(self, snapshot):
        if self.simulate and self.echo:
            print(f"[{self.code}] |{self.render(snapshot)}|")
        self._publish_state({'leds': snapshot})

    def cleanup(self):
        self.reset_all()
        if self._hw:
            GPIO.cleanup(self.pins)
