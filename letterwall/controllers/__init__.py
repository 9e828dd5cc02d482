from letterwall.controllers.playback_scheduler import PlaybackScheduler
from letterwall.controllers.wall_mqtt_sync import WallMQTTSync
from letterwall.controllers.wall_controller import WallController

__all__ = ['PlaybackScheduler', 'WallMQTTSync', 'WallController']
