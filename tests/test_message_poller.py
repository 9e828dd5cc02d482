import threading

from letterwall.simulators import MessagePoller


def test_simulate_device_polls_count_times():
    calls = []
    done = []
    poller = MessagePoller(lambda: calls.append(1), on_done=done.append)
    thread = poller.simulate_device(count=3, interval=0)
    thread.join(timeout=2)
    assert len(calls) == 3
    assert done == [3]


def test_fetch_errors_do_not_stop_polling(capsys):
    calls = []

    def failing_fetch():
        calls.append(1)
        raise RuntimeError("server down")

    poller = MessagePoller(failing_fetch)
    poller.simulate_device(count=2, interval=0).join(timeout=2)
    assert len(calls) == 2
    assert 'Fetch failed: server down' in capsys.readouterr().out


def test_auto_refresh_until_stopped():
    twice = threading.Event()
    calls = []

    def fetch():
        calls.append(1)
        if len(calls) >= 2:
            twice.set()

    poller = MessagePoller(fetch)
    poller.start_auto_refresh(interval=0.01)
    assert poller.is_auto_refreshing()
    assert twice.wait(timeout=2)

    poller.stop()
    assert not poller.is_auto_refreshing()
    count = len(calls)
    threading.Event().wait(0.05)
    assert len(calls) == count
