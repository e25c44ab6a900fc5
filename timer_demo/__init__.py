"""Interval and delayed callbacks: a repeating timer canceled by a one-shot timer"""

from . import console
from .timer_scheduler import TimerScheduler
__version__ = '2026.10.19'
__all__ = ['TimerScheduler', 'console']
