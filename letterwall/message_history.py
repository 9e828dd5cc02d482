"""Recent message log, newest first, capped at a fixed count"""

import json
import os
import threading
from datetime import datetime

DEFAULT_RETENTION = 5


class MessageHistory:

    def __init__(self, retention=DEFAULT_RETENTION, path=None):
        self.retention = max(1, int(retention))
        self.path = path
        self._lock = threading.Lock()
        self._items = []
        if self.path:
            self._load()

    def add(self, text, when=None):
        when = when or datetime.now()
        item = {
            'text': text,
            'time': when.strftime('%H:%M:%S'),
            'date': when.strftime('%Y-%m-%d'),
        }
        with self._lock:
            self._items.insert(0, item)
            del self._items[self.retention:]
            self._save_locked()
        return item

    def list(self):
        with self._lock:
            return [dict(item) for item in self._items]

    def latest(self):
        with self._lock:
            return self._items[0]['text'] if self._items else None

    def clear(self):
        with self._lock:
            self._items = []
            if self.path and os.path.exists(self.path):
                os.remove(self.path)

    def __len__(self):
        with self._lock:
            return len(self._items)

    # ========== PERSISTENCE ==========

    def _load(self):
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"[HISTORY] Error loading messages: {e}")
            return
        if not isinstance(data, list):
            print("[HISTORY] Error loading messages: expected a list")
            return
        self._items = [
            item for item in data
            if isinstance(item, dict)
            and all(isinstance(item.get(key), str) for key in ('text', 'time', 'date'))
        ][:self.retention]

    def _save_locked(self):
        if not self.path:
            return
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(self._items, f)
