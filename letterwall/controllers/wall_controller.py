"""Wall controller - LED strip preview, message server link and CLI commands"""

import random
import threading
import time

from letterwall.components import LEDStrip
from letterwall.content_filter import ContentFilter
from letterwall.controllers.playback_scheduler import PlaybackScheduler
from letterwall.controllers.wall_mqtt_sync import WallMQTTSync
from letterwall.message_client import MessageClient, MessageClientError
from letterwall.message_history import MessageHistory
from letterwall.mqtt_publisher import MQTTBatchPublisher
from letterwall.settings import resolve_path
from letterwall.simulators import MessagePoller

DEFAULT_FALLBACK = "TEST"
DEFAULT_DEMOS = ["HELLO", "TEST 123", "LED DEMO", "ABC 123"]


class WallController:
    """Controller for the letter wall device"""

    def __init__(self, settings, client=None, timer_factory=threading.Timer, clock=time.monotonic):
        self.settings = settings
        self.wall_settings = settings.get("WALL", {})
        self.device_info = self.wall_settings.get("device", {"id": "WALL1"})
        self.device_id = self.device_info.get("id", "WALL1")

        playback = self.wall_settings.get("playback", {})
        self.fallback_message = playback.get("fallback_message", DEFAULT_FALLBACK)
        self.demo_messages = playback.get("demo_messages", DEFAULT_DEMOS)
        self.polling = self.wall_settings.get("polling", {})

        self.components = {}
        self.publisher = MQTTBatchPublisher(settings.get("mqtt", {}), self.device_info)
        self._init_components()

        self.scheduler = PlaybackScheduler(
            self._ensure_strip(),
            tick_ms=playback.get("tick_ms", 800),
            flash_ms=playback.get("flash_ms", 500),
            timer_factory=timer_factory,
            on_state_change=self._on_playback_state,
            clock=clock,
        )

        server = settings.get("server", {})
        self.client = client or MessageClient(
            server.get("base_url", "http://localhost:8080"),
            timeout=server.get("timeout", 5),
        )
        self.content_filter = ContentFilter.from_settings(settings.get("filter", {}))

        history_cfg = settings.get("history", {})
        self.history = MessageHistory(
            retention=history_cfg.get("retention", 5),
            path=resolve_path(history_cfg.get("path")),
        )

        mqtt_cfg = dict(settings.get("mqtt", {}))
        cmd_cfg = self.wall_settings.get("mqtt_commands", {})
        mqtt_cfg["enabled"] = mqtt_cfg.get("enabled", True) and cmd_cfg.get("enabled", True)
        self.sync = WallMQTTSync(
            mqtt_cfg,
            self.device_id,
            on_message_received=self._on_server_message,
            on_command=self._on_web_command,
        )

        self.poller = MessagePoller(self.fetch_and_preview, on_done=self._on_simulation_done)

        self.connected = False
        self.last_sent = None
        self.running = False

    # ========== INIT ==========

    def _init_components(self):
        print("=" * 50)
        print("Initializing Letter Wall Components...")
        print("=" * 50)

        if "LWS" in self.wall_settings:
            self.components["LWS"] = LEDStrip("LWS", self.wall_settings["LWS"], publisher=self.publisher)
            self._log_init("LWS")

        print("=" * 50)

    def _log_init(self, code):
        s = self.wall_settings[code]
        mode = "SIM" if s.get('simulate', True) else "HW"
        print(f"  [{code}] {s.get('name', code)} ({mode})")

    def _ensure_strip(self):
        strip = self.components.get("LWS")
        if strip is None:
            # no strip configured: keep a silent simulated one for previews
            strip = LEDStrip("LWS", {"simulate": True, "echo": False, "publish": False})
            self.components["LWS"] = strip
        return strip

    @property
    def strip(self):
        return self.components["LWS"]

    # ========== CALLBACKS ==========

    def _on_playback_state(self, state):
        self.sync.publish_status(self.scheduler.get_state())

    def _on_server_message(self, text):
        print(f"\n[EVENT] New message from server: '{text}'")
        if text:
            self.preview(text)

    def _on_web_command(self, command, params):
        print(f"\n[WEB] Command: {command} {params}")
        text = params.get("text", "")
        if command == "play":
            self.preview(text)
        elif command == "loop":
            self.start_demo(text)
        elif command == "stop":
            self.stop()
        elif command == "reset":
            self.reset()
        else:
            print(f"[WEB] Unknown command '{command}'")

    def _on_simulation_done(self, polls):
        print(f"[POLL] Simulation complete ({polls} polls)")

    # ========== PLAYBACK ==========

    def _resolve(self, message):
        message = (message or "").strip()
        return message or self.fallback_message

    def preview(self, message):
        """One-shot preview; blank input plays the fallback message."""
        message = self._resolve(message)
        self.scheduler.play(message, PlaybackScheduler.ONE_SHOT)
        return message

    def start_demo(self, message):
        message = self._resolve(message)
        self.scheduler.play(message, PlaybackScheduler.LOOPING)
        return message

    def toggle_demo(self, message=""):
        """Play/Stop button: stops a running loop, otherwise starts one."""
        if self.scheduler.is_running() and self.scheduler.mode == PlaybackScheduler.LOOPING:
            self.stop()
            return False
        self.start_demo(message)
        return True

    def stop(self):
        self.scheduler.stop()

    def reset(self):
        self.scheduler.reset()

    def load_demo(self):
        message = random.choice(self.demo_messages)
        print(f"[DEMO] \"{message}\"")
        return self.preview(message)

    # ========== MESSAGE SERVER ==========

    def send(self, text):
        """Filter, post to the server, remember and preview. Returns True on success."""
        text = (text or "").strip()
        ok, reason = self.content_filter.check(text)
        if not ok:
            print(f"[CLIENT] {reason}")
            return False

        try:
            stored = self.client.send_message(text)
        except MessageClientError as e:
            print(f"[CLIENT] {e}")
            if e.status is None:
                self.connected = False
            return False

        self.connected = True
        self.last_sent = time.strftime("%H:%M:%S")
        self.history.add(text)
        print(f"[CLIENT] Message sent: \"{stored}\"")
        self.preview(text)
        return True

    def fetch_and_preview(self):
        """Fetch the server's current message and preview it."""
        try:
            text = self.client.fetch_last_message()
        except MessageClientError:
            self.connected = False
            raise
        self.connected = True
        if text:
            self.preview(text)
        return text

    def check_connection(self):
        self.connected = self.client.check_connection()
        return self.connected

    def clear_history(self):
        self.history.clear()
        print("[HISTORY] History cleared")

    def toggle_auto_refresh(self):
        if self.poller.is_auto_refreshing():
            self.poller.stop_auto_refresh()
            print("[POLL] Auto-refresh off")
            return False
        self.poller.start_auto_refresh(self.polling.get("auto_refresh_interval", 5.0))
        print("[POLL] Auto-refresh on")
        return True

    def simulate_device(self):
        print("[POLL] Simulating device...")
        return self.poller.simulate_device(
            count=self.polling.get("simulate_polls", 3),
            interval=self.polling.get("simulate_interval", 1.0),
        )

    # ========== CONTROL ==========

    def start(self):
        self.running = True
        self.publisher.start()
        self.sync.start()
        self.check_connection()

    def stop_all(self):
        self.running = False
        self.poller.stop()
        self.scheduler.stop()
        self.sync.stop()
        self.publisher.stop()

    def cleanup(self):
        """Cleanup all resources"""
        self.stop_all()
        for comp in self.components.values():
            comp.cleanup()
        self.client.close()

    # ========== STATUS ==========

    def get_status(self):
        playback = self.scheduler.get_state()
        return {
            "connection": "Connected" if self.connected else "Disconnected",
            "device": "Ready" if self.connected else "Offline",
            "playback": playback["state"],
            "mode": playback["mode"] or "-",
            "message": playback["message"],
            "strip": self.strip.render(),
            "auto_refresh": "ON" if self.poller.is_auto_refreshing() else "OFF",
            "last_sent": self.last_sent or "-",
            "history": len(self.history),
        }

    def print_status(self):
        print("\n" + "=" * 50)
        print("  LETTER WALL STATUS")
        print("=" * 50)
        for key, value in self.get_status().items():
            print(f"  {key:<13}: {value}")
        print("=" * 50)

    def print_history(self):
        items = self.history.list()
        if not items:
            print("No messages")
            return
        for item in items:
            print(f"  {item['date']} {item['time']}  {item['text']}")

    # ========== COMMAND HANDLER ==========

    def handle_command(self, cmd):
        """
        Handle one console command. The first word selects the action,
        the rest is the message text where one is needed.
        Returns None for unknown commands.
        """
        parts = cmd.strip().split(None, 1)
        if not parts:
            return None
        key = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else ""

        if key == 's':
            self.print_status()
        elif key == 'p':
            self.preview(arg)
        elif key == 'l':
            started = self.toggle_demo(arg)
            print("[PLAYBACK] Demo loop " + ("started" if started else "stopped"))
        elif key == 'x':
            self.stop()
        elif key == 'r':
            self.reset()
        elif key == 'd':
            self.load_demo()
        elif key == 'n':
            self.send(arg)
        elif key == 'f':
            try:
                text = self.fetch_and_preview()
            except MessageClientError as e:
                print(f"[CLIENT] {e}")
            else:
                print(f"[CLIENT] Last message: \"{text or ''}\"")
        elif key == 'a':
            self.toggle_auto_refresh()
        elif key == 'y':
            self.simulate_device()
        elif key == 'm':
            self.print_history()
        elif key == 'c':
            self.clear_history()
        elif key == 'k':
            state = "Connected" if self.check_connection() else "Disconnected"
            print(f"[CLIENT] {state}")
        else:
            return None
        return True
