"""
Module shows how to pass arguments to the callback
"""

from timer_demo import TimerScheduler


def function1(x, y, z):
    print("Function 1 called with arguments: x=%s, y=%s, z=%s" % (x, y, z))

with TimerScheduler() as ts:
    # Value of argument x is passed as positional argument, in a tuple.
    # Values of arguments y, and z are passed as named arguments, in a dict.
    ts.set_timeout(function1, 1, task_args=(1,), task_kwargs={'y': 2, 'z': 3})
    ts.run()
