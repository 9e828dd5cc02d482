"""Base component class for letter wall hardware"""

import time


class BaseComponent:
    """
    Base class for wall components.

    settings:
      simulate - no GPIO, console output only (default True)
      publish  - push state changes to the MQTT publisher (default True)
    """

    def __init__(self, code, settings, publisher=None):
        self.code = code
        self.settings = settings
        self.simulate = settings.get('simulate', True)
        self.publish_enabled = settings.get('publish', True)
        self._publisher = publisher

    def _publish_state(self, value):
        """Enqueue a state snapshot for this component"""
        if not self.publish_enabled or self._publisher is None:
            return
        self._publisher.enqueue({
            'device': self._publisher.device_info.get('id', 'UNKNOWN'),
            'component': self.code,
            'value': value,
            'simulated': self.simulate,
            'ts': time.time(),
        })

    def cleanup(self):
        """Override in subclasses to release GPIO resources"""
        pass
