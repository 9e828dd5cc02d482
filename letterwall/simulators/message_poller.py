"""Message polling - auto-refresh and simulated device polling"""

import threading


class MessagePoller:
    """
    Background polling of the message server.

    auto-refresh   : fetch every `interval` seconds until stopped
    simulate device: fetch `count` times, `interval` apart, then report done

    `fetch` is a callable doing one fetch-and-preview cycle; its errors are
    reported and polling carries on.
    """

    def __init__(self, fetch, on_done=None):
        self._fetch = fetch
        self._on_done = on_done
        self._auto_stop = None
        self._auto_thread = None
        self._sim_stop = None
        self._sim_thread = None

    # ========== AUTO REFRESH ==========

    def start_auto_refresh(self, interval=5.0):
        self.stop_auto_refresh()
        self._auto_stop = threading.Event()
        self._auto_thread = threading.Thread(
            target=self._auto_loop,
            args=(self._auto_stop, float(interval)),
            daemon=True
        )
        self._auto_thread.start()

    def stop_auto_refresh(self):
        if self._auto_stop is not None:
            self._auto_stop.set()
            if self._auto_thread is not threading.current_thread():
                self._auto_thread.join(timeout=1)
        self._auto_stop = None
        self._auto_thread = None

    def is_auto_refreshing(self):
        return self._auto_thread is not None and self._auto_thread.is_alive()

    def _auto_loop(self, stop_event, interval):
        while not stop_event.wait(interval):
            self._poll_once()

    # ========== DEVICE SIMULATION ==========

    def simulate_device(self, count=3, interval=1.0):
        """Poll `count` times like the physical wall would, then stop."""
        if self._sim_stop is not None:
            self._sim_stop.set()
        self._sim_stop = threading.Event()
        self._sim_thread = threading.Thread(
            target=self._sim_loop,
            args=(self._sim_stop, int(count), float(interval)),
            daemon=True
        )
        self._sim_thread.start()
        return self._sim_thread

    def _sim_loop(self, stop_event, count, interval):
        done = 0
        while done < count and not stop_event.wait(interval):
            done += 1
            self._poll_once()
        if done == count and self._on_done:
            self._on_done(done)

    # ========== LIFECYCLE ==========

    def _poll_once(self):
        try:
            self._fetch()
        except Exception as e:
            print(f"[POLL] Fetch failed: {e}")

    def stop(self):
        self.stop_auto_refresh()
        if self._sim_stop is not None:
            self._sim_stop.set()
            self._sim_thread.join(timeout=1)
        self._sim_stop = None
        self._sim_thread = None
