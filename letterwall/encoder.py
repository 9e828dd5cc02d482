"""Signal encoder - message text -> timed LED activation events

Every character gets a 300 ms slot:
  A-Z    -> one LETTER event on its own LED (A=0 ... Z=25)
  1-9    -> n SEQUENCE_STEP events lighting LEDs 0..n-1, 100 ms apart
  0, ' ' -> nothing
  other  -> one FLASH_ALL event (whole strip, reverts after 500 ms)
"""

from collections import namedtuple

NUM_POSITIONS = 26
CHAR_SLOT_MS = 300
STEP_MS = 100
FLASH_MS = 500

LETTER_TO_POSITION = {chr(ord('A') + i): i for i in range(NUM_POSITIONS)}
DIGITS = frozenset('0123456789')


class EventKind:
    LETTER        = 'letter'
    SEQUENCE_STEP = 'sequence'
    FLASH_ALL     = 'flash_all'


ActivationEvent = namedtuple('ActivationEvent', ['offset_ms', 'kind', 'position'])


def encode_char(char, base_offset_ms=0):
    """Events for a single character, case-insensitive."""
    char = char.upper()
    if char in LETTER_TO_POSITION:
        return [ActivationEvent(base_offset_ms, EventKind.LETTER, LETTER_TO_POSITION[char])]

    if char in DIGITS:
        n = int(char)
        if not 1 <= n <= NUM_POSITIONS:
            return []
        return [
            ActivationEvent(base_offset_ms + i * STEP_MS, EventKind.SEQUENCE_STEP, i)
            for i in range(n)
        ]

    if char == ' ':
        return []

    return [ActivationEvent(base_offset_ms, EventKind.FLASH_ALL, None)]


def encode(message):
    """
    Encode a message into an ordered list of ActivationEvents.

    Offsets depend only on character index and type, so the same message
    always yields the same list. The result is sorted by offset; equal
    offsets keep character order, then sub-step order.
    """
    events = []
    for index, char in enumerate(message or ''):
        events.extend(encode_char(char, index * CHAR_SLOT_MS))
    # a digit ramp can overlap the next characters' slots
    events.sort(key=lambda e: e.offset_ms)
    return events
