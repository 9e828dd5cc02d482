import pytest

from letterwall.components import LEDStrip
from letterwall.controllers import PlaybackScheduler, WallController
from letterwall.message_client import MessageClientError


class FakeClient:

    def __init__(self, last_message=None, error=None):
        self.last_message = last_message
        self.error = error
        self.sent = []
        self.closed = False

    def send_message(self, text):
        if self.error:
            raise self.error
        self.sent.append(text)
        self.last_message = text
        return text

    def fetch_last_message(self):
        if self.error:
            raise self.error
        return self.last_message

    def check_connection(self):
        return self.error is None

    def close(self):
        self.closed = True


SETTINGS = {
    "mqtt": {"enabled": False},
    "filter": {"blocked_words": ["scam"], "max_length": 100},
    "history": {"retention": 5},
    "WALL": {
        "device": {"id": "WALL1"},
        "playback": {"fallback_message": "TEST", "demo_messages": ["HELLO", "ABC 123"]},
        "polling": {"simulate_polls": 2, "simulate_interval": 0},
        "LWS": {"name": "Letter LED strip", "simulate": True, "echo": False},
    },
}


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def controller(client, clock):
    return WallController(SETTINGS, client=client, timer_factory=clock.timer_factory, clock=clock.monotonic)


def test_components_from_settings(controller):
    assert isinstance(controller.strip, LEDStrip)
    assert controller.strip.is_all_off()


def test_missing_strip_settings_still_previews(client, clock):
    settings = dict(SETTINGS, WALL={"device": {"id": "WALL1"}})
    controller = WallController(settings, client=client, timer_factory=clock.timer_factory, clock=clock.monotonic)
    controller.preview("A")
    clock.advance(0)
    assert controller.strip.lit_positions() == [0]


def test_preview_plays_once(controller, clock):
    assert controller.preview("  ab  ") == "ab"
    clock.advance(0)
    assert controller.strip.lit_positions() == [0]
    clock.advance(300)
    assert controller.strip.lit_positions() == [0, 1]
    assert controller.scheduler.state == PlaybackScheduler.IDLE


def test_blank_preview_uses_fallback(controller):
    assert controller.preview("   ") == "TEST"
    assert controller.scheduler.get_state()["message"] == "TEST"


def test_toggle_demo(controller, clock):
    assert controller.toggle_demo("HI") is True
    assert controller.scheduler.mode == PlaybackScheduler.LOOPING
    clock.advance(800)
    assert controller.strip.lit_positions() == [7]

    assert controller.toggle_demo() is False
    assert controller.scheduler.state == PlaybackScheduler.STOPPED
    assert controller.strip.is_all_off()


def test_toggle_demo_restarts_over_one_shot(controller):
    controller.preview("HELLO")
    assert controller.toggle_demo("") is True
    assert controller.scheduler.get_state()["message"] == "TEST"


def test_reset(controller, clock):
    controller.preview("ZZZ")
    clock.advance(0)
    controller.reset()
    assert controller.strip.is_all_off()
    assert controller.scheduler.get_state()["message"] == ""


def test_load_demo(controller):
    message = controller.load_demo()
    assert message in ("HELLO", "ABC 123")
    assert controller.scheduler.is_running()


def test_send_success(controller, client, clock):
    assert controller.send(" HELLO ") is True
    assert client.sent == ["HELLO"]
    assert controller.connected
    assert controller.last_sent is not None
    assert controller.history.latest() == "HELLO"
    clock.advance(0)
    assert controller.strip.lit_positions() == [7]


def test_send_blocked_never_reaches_server(controller, client, capsys):
    assert controller.send("big scam") is False
    assert client.sent == []
    assert "blocked word" in capsys.readouterr().out


def test_send_connection_error(client, clock, capsys):
    client.error = MessageClientError("Connection error: refused")
    controller = WallController(SETTINGS, client=client, timer_factory=clock.timer_factory, clock=clock.monotonic)
    controller.connected = True
    assert controller.send("HELLO") is False
    assert controller.connected is False
    assert len(controller.history) == 0
    assert "Connection error" in capsys.readouterr().out


def test_fetch_and_preview(controller, client, clock):
    client.last_message = "ZED"
    assert controller.fetch_and_preview() == "ZED"
    clock.advance(0)
    assert controller.strip.lit_positions() == [25]


def test_fetch_nothing_leaves_strip(controller, client):
    client.last_message = None
    assert controller.fetch_and_preview() is None
    assert controller.scheduler.state == PlaybackScheduler.IDLE


def test_fetch_error_marks_disconnected(controller, client):
    client.error = MessageClientError("Connection error")
    controller.connected = True
    with pytest.raises(MessageClientError):
        controller.fetch_and_preview()
    assert controller.connected is False


def test_server_message_is_previewed(controller, clock):
    controller._on_server_message("QUIZ")
    clock.advance(0)
    assert controller.strip.lit_positions() == [16]


def test_web_commands(controller):
    controller._on_web_command("loop", {"text": "AB"})
    assert controller.scheduler.mode == PlaybackScheduler.LOOPING
    controller._on_web_command("stop", {})
    assert controller.scheduler.state == PlaybackScheduler.STOPPED
    controller._on_web_command("play", {"text": "CD"})
    assert controller.scheduler.mode == PlaybackScheduler.ONE_SHOT
    controller._on_web_command("reset", {})
    assert controller.scheduler.state == PlaybackScheduler.IDLE


def test_simulate_device(controller, client):
    client.last_message = "HI"
    controller.simulate_device().join(timeout=2)
    assert controller.scheduler.get_state()["message"] == "HI"


def test_handle_command(controller, client, clock):
    assert controller.handle_command("p Hello") is True
    assert controller.scheduler.get_state()["message"] == "Hello"
    assert controller.handle_command("l") is True
    assert controller.scheduler.mode == PlaybackScheduler.LOOPING
    assert controller.handle_command("X") is True
    assert controller.scheduler.state == PlaybackScheduler.STOPPED
    assert controller.handle_command("n WORLD") is True
    assert client.sent == ["WORLD"]
    assert controller.handle_command("c") is True
    assert len(controller.history) == 0
    assert controller.handle_command("zzz") is None
    assert controller.handle_command("   ") is None


def test_handle_fetch_error_is_reported(controller, client, capsys):
    client.error = MessageClientError("Connection error")
    assert controller.handle_command("f") is True
    assert "Connection error" in capsys.readouterr().out


def test_status(controller, clock):
    controller.preview("A")
    clock.advance(0)
    status = controller.get_status()
    assert status["playback"] == "IDLE"
    assert status["mode"] == "ONE_SHOT"
    assert status["message"] == "A"
    assert "[A]" in status["strip"]
    assert status["auto_refresh"] == "OFF"
    assert status["connection"] == "Disconnected"


def test_cleanup(controller, client, clock):
    controller.toggle_demo("ABC")
    clock.advance(800)
    controller.cleanup()
    assert client.closed
    assert controller.strip.is_all_off()
    assert clock.live() == []
