from trafficlight.core.config_manager import ConfigManager
from trafficlight.core.config_migration import migrate_config
from trafficlight.core.events import EventBus, EventType
from trafficlight.core.scheduler import ManualScheduler, Scheduler, TimerHandle

__all__ = [
    "ConfigManager",
    "EventBus",
    "EventType",
    "ManualScheduler",
    "Scheduler",
    "TimerHandle",
    "migrate_config",
]
