"""
MQTT link between the message server and the letter wall.

Topics
------
  letterwall/message  - server -> walls (retained): every accepted message,
                        so a wall that connects late still gets the current one.
  letterwall/command  - web app -> one wall: play / loop / stop / reset.
  letterwall/status   - wall -> web app (retained): scheduler state.
"""

import json
import threading

import paho.mqtt.client as mqtt


class WallMQTTSync:

    TOPIC_MESSAGE = "letterwall/message"
    TOPIC_COMMAND = "letterwall/command"
    TOPIC_STATUS  = "letterwall/status"

    def __init__(self, mqtt_cfg, device_id, on_message_received=None, on_command=None):
        """
        Parameters
        ----------
        mqtt_cfg            : dict  - broker settings (host, port, enabled, ...)
        device_id           : str   - id matched against command targets
        on_message_received : callable(text: str)
        on_command          : callable(command: str, params: dict)
        """
        self._cfg       = mqtt_cfg or {}
        self._device_id = device_id

        self.on_message_received = on_message_received
        self.on_command          = on_command

        self._last_message = None
        self._lock         = threading.Lock()
        self._client       = None
        self._connected    = False

    # ========== LIFECYCLE ==========

    def start(self):
        if not self._cfg.get('enabled', True):
            print(f"[{self._device_id}] MQTT disabled - message sync inactive")
            return

        host = self._cfg.get('host', 'localhost')
        port = int(self._cfg.get('port', 1883))

        self._client = mqtt.Client(
            client_id=f"letterwall-{self._device_id}",
            clean_session=True,
        )

        user = self._cfg.get('username')
        pwd  = self._cfg.get('password')
        if user:
            self._client.username_pw_set(user, pwd)

        self._client.on_connect    = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message    = self._on_message

        try:
            self._client.connect(host, port, keepalive=60)
            self._client.loop_start()
        except Exception as exc:
            print(f"[{self._device_id}] Connection failed: {exc}")

    def stop(self):
        if self._client:
            self._client.loop_stop()
            self._client.disconnect()
        self._connected = False

    # ========== MQTT CALLBACKS ==========

    def _on_connect(self, client, userdata, flags, rc):
        if rc == 0:
            self._connected = True
            client.subscribe(self.TOPIC_MESSAGE, qos=1)
            client.subscribe(self.TOPIC_COMMAND, qos=1)
        else:
            print(f"[{self._device_id}] Connection refused (rc={rc})")

    def _on_disconnect(self, client, userdata, rc):
        self._connected = False
        if rc != 0:
            print(f"[{self._device_id}] Unexpected disconnect (rc={rc})")

    def _on_message(self, client, userdata, msg):
        try:
            payload = json.loads(msg.payload.decode())
        except (UnicodeDecodeError, ValueError):
            return
        if not isinstance(payload, dict):
            return
        self.dispatch(msg.topic, payload)

    def dispatch(self, topic, payload):
        """Route a decoded payload to the matching callback."""
        if topic == self.TOPIC_MESSAGE:
            text = payload.get('text', '')
            if not isinstance(text, str):
                return
            with self._lock:
                self._last_message = text
            if self.on_message_received:
                self.on_message_received(text)

        elif topic == self.TOPIC_COMMAND:
            command = payload.get('command', '')
            params = payload.get('params', {})
            if not isinstance(command, str) or not isinstance(params, dict):
                return
            if not isinstance(params.get('text', ''), str):
                return
            if payload.get('target') == self._device_id and self.on_command:
                self.on_command(command, params)

    # ========== PUBLISH API ==========

    def publish_status(self, status):
        """Broadcast scheduler state (retained)."""
        if not self._connected or self._client is None:
            return
        payload = json.dumps({'source': self._device_id, 'status': status})
        self._client.publish(self.TOPIC_STATUS, payload, qos=1, retain=True)

    # ========== QUERY ==========

    def get_last_message(self):
        with self._lock:
            return self._last_message

    def is_connected(self):
        return self._connected
