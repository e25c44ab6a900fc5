"""
Module shows that a cleared timeout never fires.
"""

from timer_demo import TimerScheduler


def function1(task_state):
    """
    Print a message and increase the "counter" field of task_state by one
    """
    print("Function 1 called")
    task_state["counter"] += 1


state = {"counter": 0}

with TimerScheduler() as ts:
    # function1 would run after 3 seconds...
    t_id = ts.set_timeout(function1, 3, task_args=(state,))
    # ...but the timer is cleared after 2 seconds.
    ts.set_timeout(ts.clear_timeout, 2, task_args=(t_id,))
    ts.run()

print("Counter value should be 0")
print("Counter: %s" % state["counter"])
