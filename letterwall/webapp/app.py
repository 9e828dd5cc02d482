"""Message server for the letter wall - the store the wall polls."""

import json
import threading
import time

from flask import Flask, jsonify, request

import paho.mqtt.client as mqtt

from letterwall.content_filter import ContentFilter
from letterwall.controllers.wall_mqtt_sync import WallMQTTSync
from letterwall.message_history import MessageHistory
from letterwall.settings import load_settings, resolve_path

app = Flask(__name__)

state_lock = threading.Lock()
message_state = {
    "last_message": "",
    "updated": None,
}
wall_status = {}

content_filter = ContentFilter()
history = MessageHistory()

mqtt_client = None
target_id = "WALL1"

PREVIEW_COMMANDS = ("play", "loop", "stop", "reset")


def configure(settings):
    """(Re)build filter and history from settings and clear the current message."""
    global content_filter, history, target_id

    history_cfg = settings.get("history", {})
    content_filter = ContentFilter.from_settings(settings.get("filter", {}))
    history = MessageHistory(
        retention=history_cfg.get("retention", 5),
        path=resolve_path(history_cfg.get("server_path")),
    )
    target_id = settings.get("WALL", {}).get("device", {}).get("id", "WALL1")

    with state_lock:
        message_state["last_message"] = history.latest() or ""
        message_state["updated"] = None
        wall_status.clear()


def start_mqtt(settings):
    global mqtt_client

    mqtt_cfg = settings.get("mqtt", {})
    if not mqtt_cfg.get("enabled", True):
        print("[SERVER] MQTT disabled - walls must poll GET /message")
        return

    def on_connect(client, userdata, flags, rc):
        client.subscribe(WallMQTTSync.TOPIC_STATUS)

    def on_message(client, userdata, msg):
        try:
            payload = json.loads(msg.payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return
        if isinstance(payload, dict) and isinstance(payload.get("status"), dict):
            with state_lock:
                wall_status.update(payload["status"])
                wall_status["source"] = payload.get("source")
                wall_status["updated"] = time.time()

    mqtt_client = mqtt.Client()
    if mqtt_cfg.get("username"):
        mqtt_client.username_pw_set(mqtt_cfg.get("username"), mqtt_cfg.get("password"))
    mqtt_client.on_connect = on_connect
    mqtt_client.on_message = on_message
    try:
        mqtt_client.connect(mqtt_cfg.get("host", "localhost"), int(mqtt_cfg.get("port", 1883)), 60)
    except OSError as exc:
        print(f"[SERVER] MQTT connection failed: {exc}")
        mqtt_client = None
        return
    mqtt_client.loop_start()


def _publish(topic, payload, retain=False):
    if mqtt_client is None:
        return
    mqtt_client.publish(topic, json.dumps(payload), qos=1, retain=retain)


# ========== MESSAGE STORE ==========

@app.route("/")
def index():
    return jsonify({
        "endpoints": {
            "GET /message": "Get last message",
            "POST /message": "Send message, body {\"text\": \"message\"}",
            "GET /api/history": "Recent messages, newest first",
            "DELETE /api/history": "Clear history",
            "POST /api/preview/<command>": "play | loop | stop | reset",
            "GET /api/status": "Last status reported by the wall",
        }
    })


@app.route("/message", methods=["GET"])
def get_message():
    with state_lock:
        return jsonify({"last_message": message_state["last_message"]})


@app.route("/message", methods=["POST"])
def post_message():
    payload = request.get_json(silent=True) or {}
    text = payload.get("text")
    if not isinstance(text, str):
        return jsonify({"error": "Field 'text' is required"}), 400

    text = text.strip()
    ok, reason = content_filter.check(text)
    if not ok:
        print(f"[SERVER] Rejected message: {reason}")
        return jsonify({"error": reason}), 400

    history.add(text)
    with state_lock:
        message_state["last_message"] = text
        message_state["updated"] = time.time()

    print(f"[SERVER] Message stored: \"{text}\"")
    _publish(WallMQTTSync.TOPIC_MESSAGE, {"text": text}, retain=True)
    return jsonify({"last_message": text})


@app.route("/api/history", methods=["GET"])
def api_history():
    return jsonify({"messages": history.list()})


@app.route("/api/history", methods=["DELETE"])
def api_history_clear():
    history.clear()
    return jsonify({"ok": True})


# ========== WALL CONTROL ==========

@app.route("/api/preview/<command>", methods=["POST"])
def api_preview(command):
    if command not in PREVIEW_COMMANDS:
        return jsonify({"error": f"Unknown command '{command}'"}), 404
    payload = request.get_json(silent=True) or {}
    params = {}
    if command in ("play", "loop"):
        params["text"] = str(payload.get("text", ""))
    publish_command(command, params)
    return jsonify({"ok": True, "sent": mqtt_client is not None})


@app.route("/api/status")
def api_status():
    with state_lock:
        return jsonify({
            "last_message": message_state["last_message"],
            "updated": message_state["updated"],
            "wall": dict(wall_status),
        })


def publish_command(command, params):
    _publish(WallMQTTSync.TOPIC_COMMAND, {
        "target": target_id,
        "command": command,
        "params": params,
    })


def main():
    settings = load_settings()
    server_cfg = settings.get("server", {})
    configure(settings)
    start_mqtt(settings)
    app.run(host=server_cfg.get("host", "0.0.0.0"), port=int(server_cfg.get("port", 8080)))


if __name__ == "__main__":
    main()
