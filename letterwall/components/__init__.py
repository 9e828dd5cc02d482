from letterwall.components.base import BaseComponent
from letterwall.components.led_strip import LEDStrip

__all__ = [
    'BaseComponent',
    'LEDStrip',
]
