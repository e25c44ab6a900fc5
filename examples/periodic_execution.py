"""
Module shows how to use TimerScheduler to launch periodic actions.

The interval is set to 1 second, and cleared from another thread after 5 seconds.
"""

import threading
import time
from timer_demo import TimerScheduler


def function1():
    print("Function 1 called")

ts = TimerScheduler()

# Execute action once a second
# Timer ID must be saved for clearing the interval.
print("Scheduling the interval")
action_id = ts.set_interval(function1, 1)


def stop():
    time.sleep(5)
    print("Clearing the interval")
    ts.clear_interval(action_id)

threading.Thread(target=stop).start()

# returns once the interval is cleared
ts.run()
ts.shutdown()
