"""Blocked-word and length checks for outgoing messages"""

import re

DEFAULT_MAX_LENGTH = 100


class ContentFilter:
    """
    Decides whether a message may be sent to the wall.

    Blocked words match whole words, case-insensitively, so 'scam' blocks
    "SCAM ALERT" but not "SCAMPI".
    """

    def __init__(self, blocked_words=None, max_length=DEFAULT_MAX_LENGTH):
        self.max_length = int(max_length)
        self.blocked_words = sorted({w.strip().lower() for w in (blocked_words or []) if w.strip()})
        if self.blocked_words:
            alternatives = '|'.join(re.escape(w) for w in self.blocked_words)
            self._pattern = re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)
        else:
            self._pattern = None

    @classmethod
    def from_settings(cls, settings):
        return cls(
            blocked_words=settings.get('blocked_words', []),
            max_length=settings.get('max_length', DEFAULT_MAX_LENGTH),
        )

    def check(self, text):
        """Return (ok, reason); reason is None when ok."""
        if text is None or not text.strip():
            return False, "Please enter a message."
        if len(text) > self.max_length:
            return False, f"Message too long ({len(text)}/{self.max_length})"
        if self._pattern is not None:
            match = self._pattern.search(text)
            if match:
                return False, f"Message contains blocked word '{match.group(0)}'"
        return True, None

    def is_allowed(self, text):
        return self.check(text)[0]
