from letterwall.simulators.message_poller import MessagePoller

__all__ = ['MessagePoller']
