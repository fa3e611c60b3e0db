"""Traffic light timer with global hotkeys and interactive rebinding."""

__version__ = "1.0.0"
