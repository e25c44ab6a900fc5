"""
Implement interval and delayed callbacks on top of a timer thread.

The module implements a small timer facility with the semantics of
setTimeout/setInterval: a delayed callback is executed once after
the requested delay, an interval callback is executed every period
until it is cleared.

The timer thread only measures time. When a timer is due, its id is
posted to a task queue, and the callbacks are executed by whichever
thread runs the event loop (TimerScheduler.run()), one at a time.
A timer cleared before its queued firing is executed is skipped, so
no callback runs after clear_timer() returns.
"""

# pylint: disable=consider-using-f-string, invalid-name
from threading import Thread, Event, Lock
import logging
import math
import numbers
import queue
import time
from sortedcontainers import SortedDict

logger = logging.getLogger(__name__)

# longest single wait on an Event or Queue. Longer delays are waited out
# in several steps, the platform rejects timeouts near threading.TIMEOUT_MAX
MAX_WAIT = 3600.0


class IDServer:
    """Implements a thread-safe service generating unique timer ids.

    Ids are sequential and start at 1, so 0 is never a valid timer id.

    Arguments:
        start_id - first ID handed out. Defaults to 1.
    """

    def __init__(self, start_id=1):
        self.id = start_id
        self.id_mutex = Lock()

    def get_id(self):
        """Return the next unused id."""
        with self.id_mutex:
            uid = self.id
            self.id += 1
        return uid


class TimerScheduler:
    """
    Class implements the timer facility.

    Timers are registered with set_timeout() and set_interval(), and
    removed with clear_timer() (or its aliases clear_timeout() and
    clear_interval()). Callbacks run only while some thread is inside
    run().
    """

    class TimerThread(Thread):
        """
        The class measures time for all registered timers.

        This is an internal class, not intended for general use.
        """

        def __init__(self):
            Thread.__init__(self, name="timer-thread", daemon=True)
            self.timer_event = Event()

            # due time -> list of timer records due at that moment
            self.events = SortedDict()

            # timer id -> timer record, for every live timer
            self.timers = {}

            # Mutex protecting self.events and self.timers
            self.mutex = Lock()

            # ids of due timers, drained by the event loop.
            # None is posted to wake the loop up.
            self.tasks = queue.Queue()

            self.running = True
            self.task_id = IDServer()

            # "don't wait" threshold - fire immediately if current
            # and scheduled times are close.
            self.dontwait_threshold = 0.01

        def schedule_event(self, callback, delay, period=None,
                           task_args=(), task_kwargs=None):
            """
            Register a timer and return its id.

            Arguments:
                callback - function to call when the timer fires
                delay - seconds until the first firing
                period - seconds between firings for interval timers,
                         None for one-shot timers
                task_args - positional arguments for the callback
                task_kwargs - named arguments for the callback
            """
            if not self.running:
                raise RuntimeError("timer scheduler has been shut down")

            rid = self.task_id.get_id()
            scheduled_time = time.monotonic() + delay
            timer = {"id": rid,
                     "callback": callback,
                     "period": period,
                     "current_execution": scheduled_time,
                     "last_execution": None,
                     "executions": 0,
                     # due time of the firing waiting in self.tasks, if any
                     "queued": None,
                     "args": task_args,
                     "kwargs": task_kwargs or {}
                     }
            with self.mutex:
                self.timers[rid] = timer
                self._enqueue(timer)
            logger.debug("timer %s scheduled in %.3fs (period %s)", rid, delay, period)
            # ping the timer thread, the new timer may be due before the current head
            self.timer_event.set()
            return rid

        def _enqueue(self, timer):
            # Caller must hold self.mutex
            due = timer["current_execution"]
            if due in self.events:
                self.events[due].append(timer)
            else:
                self.events[due] = [timer]

        def _dequeue(self, timer):
            # Caller must hold self.mutex
            due = timer["current_execution"]
            timers = self.events.get(due)
            if timers is None:
                return
            if timer in timers:
                timers.remove(timer)
            if len(timers) == 0:
                del self.events[due]

        def cancel_event(self, timer_id):
            """
            Remove a timer. Returns True if the timer was registered,
            False otherwise.
            """
            with self.mutex:
                timer = self.timers.pop(timer_id, None)
                if timer is None:
                    return False
                self._dequeue(timer)
                empty = len(self.timers) == 0
            logger.debug("timer %s cleared", timer_id)
            self.timer_event.set()
            if empty:
                # let a waiting event loop notice that nothing is left to do
                self.tasks.put(None)
            return True

        def cancel_all(self):
            """Remove every registered timer. Returns the number removed."""
            with self.mutex:
                count = len(self.timers)
                self.timers.clear()
                self.events.clear()
            self.tasks.put(None)
            return count

        def status(self, timer_id):
            """
            Return information on status of a timer.

            Exceptions:
                KeyError - timer not found
            """
            with self.mutex:
                timer = self.timers.get(timer_id)
                if timer is None:
                    raise KeyError("timer not found", {"id": timer_id})
                return {
                    'id': timer_id,
                    'periodic': timer['period'] is not None,
                    'period': timer['period'],
                    'scheduled_execution': timer['current_execution'],
                    'previous_execution': timer['last_execution'],
                    'executions': timer['executions'],
                }

        def pending(self):
            with self.mutex:
                return len(self.timers)

        def fire_due(self):
            """
            Post every due timer to the task queue.

            Interval timers are put back into the queue at their next
            execution time. An interval whose previous firing is still
            waiting for the event loop is not posted again.
            """
            now = time.monotonic()
            fired = []
            posted = []
            with self.mutex:
                while len(self.events) > 0:
                    due, timers = self.events.peekitem(0)
                    if due - now > self.dontwait_threshold:
                        break
                    self.events.popitem(0)
                    fired.extend(timers)
                # reschedule only after the due batches are taken, so an
                # interval fires at most once per call
                for timer in fired:
                    due = timer["current_execution"]
                    if timer["queued"] is None:
                        timer["queued"] = due
                        posted.append(timer["id"])
                    if timer["period"] is None:
                        continue
                    timer["last_execution"] = due
                    next_time = due + timer["period"]
                    if next_time < now - timer["period"]:
                        # fell behind by more than a period, skip the missed ticks
                        next_time = now + timer["period"]
                    timer["current_execution"] = next_time
                    self._enqueue(timer)
            for timer_id in posted:
                logger.debug("timer %s fired", timer_id)
                self.tasks.put(timer_id)

        def take(self, timer_id):
            """
            Return (callback, args, kwargs) for a fired timer, or None if
            the timer has been cleared since it fired.

            One-shot timers are unregistered here. An interval picked up
            more than a period after it fired is re-anchored to now, so
            the firings it missed are skipped.
            """
            reanchored = False
            with self.mutex:
                timer = self.timers.get(timer_id)
                if timer is None or timer["queued"] is None:
                    return None
                fired_at = timer["queued"]
                timer["queued"] = None
                timer["executions"] += 1
                if timer["period"] is None:
                    timer["last_execution"] = timer["current_execution"]
                    del self.timers[timer_id]
                else:
                    now = time.monotonic()
                    if now - fired_at > timer["period"]:
                        self._dequeue(timer)
                        timer["current_execution"] = now + timer["period"]
                        self._enqueue(timer)
                        reanchored = True
                entry = timer["callback"], timer["args"], timer["kwargs"]
            if reanchored:
                logger.debug("timer %s fell behind, next firing re-anchored", timer_id)
                self.timer_event.set()
            return entry

        def shutdown(self):
            """Stop the timer thread."""
            self.running = False
            self.timer_event.set()

        def run(self):
            while self.running:
                self.timer_event.clear()
                # shutdown() may have set the event just before it was cleared
                if not self.running:
                    break
                with self.mutex:
                    next_time = self.events.peekitem(0)[0] if len(self.events) > 0 else None

                if next_time is None:
                    # just wait for a new timer
                    self.timer_event.wait()
                    continue

                wait_time = next_time - time.monotonic()
                if wait_time > self.dontwait_threshold:
                    if self.timer_event.wait(min(wait_time, MAX_WAIT)) or wait_time > MAX_WAIT:
                        # woken up by schedule/cancel, or not due yet; re-read the queue
                        continue

                if self.running:
                    self.fire_due()

    def __init__(self, time_epsilon=None):
        """
        Create the scheduler and start the timer thread.

        Arguments:
            time_epsilon - shortest distance between two moments below which
                           they are treated as the same moment. Also the
                           shortest allowed interval period.
                           Default value: 0.01s
        """
        self.timer = TimerScheduler.TimerThread()
        if time_epsilon is not None:
            self.timer.dontwait_threshold = time_epsilon
        self.timer.start()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    @staticmethod
    def _check(callback, delay):
        if not callable(callback):
            raise TypeError("callback must be callable, got %r" % (callback,))
        if isinstance(delay, bool) or not isinstance(delay, numbers.Real):
            raise TypeError("delay must be a number of seconds, got %r" % (delay,))
        delay = float(delay)
        if not math.isfinite(delay):
            raise ValueError("delay must be finite, got %r" % (delay,))
        return max(delay, 0.0)

    def set_timeout(self, callback, delay=0, task_args=None, task_kwargs=None):
        '''
        Execute callback once, after delay seconds.

        Arguments:
            callback - function to call
            delay - seconds to wait. Negative values are treated as 0.
            task_args - positional arguments for the callback
            task_kwargs - named arguments for the callback
        Returns:
            id of the timer
        Exceptions:
            TypeError - callback not callable, or delay not a number
            ValueError - delay is infinite or NaN
            RuntimeError - scheduler has been shut down
        '''
        delay = self._check(callback, delay)
        return self.timer.schedule_event(callback, delay,
                                         task_args=tuple(task_args or ()),
                                         task_kwargs=task_kwargs)

    def set_interval(self, callback, period=0, task_args=None, task_kwargs=None):
        '''
        Execute callback every period seconds until the timer is cleared.

        The first execution happens one period from now. Periods shorter
        than time_epsilon are raised to time_epsilon.
        Arguments and exceptions are the same as for set_timeout().
        '''
        period = max(self._check(callback, period), self.timer.dontwait_threshold)
        return self.timer.schedule_event(callback, period, period=period,
                                         task_args=tuple(task_args or ()),
                                         task_kwargs=task_kwargs)

    def clear_timer(self, timer_id):
        """
        Cancel a timer.

        Uses the id returned by set_timeout() or set_interval().
        Returns True if the timer was cancelled, False if it was not found
        (unknown id, already executed one-shot timer, or cleared before).
        """
        return self.timer.cancel_event(timer_id)

    clear_timeout = clear_timer
    clear_interval = clear_timer

    def status(self, timer_id):
        """
        Return status of the timer.

        Structure of the returned record:
            id - id of the timer
            periodic - True for interval timers
            period - period of interval timers, None otherwise
            scheduled_execution - monotonic time of the upcoming execution
            previous_execution - monotonic time of the previous execution
                                 of an interval timer, None before the first
            executions - number of times the callback has been executed
        """
        return self.timer.status(timer_id)

    def pending(self):
        """Return the number of registered timers."""
        return self.timer.pending()

    def _execute(self, timer_id):
        entry = self.timer.take(timer_id)
        if entry is None:
            logger.debug("timer %s cleared before execution, skipped", timer_id)
            return
        callback, args, kwargs = entry
        try:
            callback(*args, **kwargs)
        except Exception:  # pylint: disable=broad-except
            logger.exception("callback of timer %s raised", timer_id)

    def run(self, timeout=None):
        """
        Run the event loop on the calling thread.

        Executes callbacks of fired timers until no timers are left and
        every fired timer has been handled.

        Arguments:
            timeout - give up after this many seconds. None waits forever.
        Returns:
            True if the loop ran out of timers, False on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            if self.timer.pending() == 0 and self.timer.tasks.empty():
                return True
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
            try:
                timer_id = self.timer.tasks.get(
                    timeout=None if remaining is None else min(remaining, MAX_WAIT))
            except queue.Empty:
                continue
            if timer_id is not None:
                self._execute(timer_id)

    def shutdown(self, wait_until_done=True):
        """
        Cancel every timer and stop the timer thread.

        With wait_until_done the method returns once the timer thread
        has ended.
        """
        cancelled = self.timer.cancel_all()
        if cancelled:
            logger.debug("shutdown cancelled %s timer(s)", cancelled)
        self.timer.shutdown()
        if wait_until_done and self.timer.is_alive():
            self.timer.join()
