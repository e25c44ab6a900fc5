"""
Module shows how to use TimerScheduler to launch
single shot actions.
"""

from timer_demo import TimerScheduler


def function1():
    print("Function 1 called")

def function2():
    print("Function 2 called")

ts = TimerScheduler()

ts.set_timeout(function1, 2)
ts.set_timeout(function2, 3)

# returns after both functions ran
ts.run()
ts.shutdown()
