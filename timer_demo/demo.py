"""
Register a repeating callback; after a fixed delay, cancel it and log once.

With the default settings the program prints "Interval" twice,
then "Interval canceled", and exits.
"""

import argparse
import logging

from . import console
from .timer_scheduler import TimerScheduler

logger = logging.getLogger(__name__)

# seconds between "Interval" lines
INTERVAL = 1.0
# seconds until the interval is cleared
CANCEL_AFTER = 2.5


def run_demo(scheduler, interval=INTERVAL, cancel_after=CANCEL_AFTER, log=console.log):
    """
    Register both timers on scheduler.

    Callbacks only run once the scheduler's event loop is running.

    Returns:
        (interval timer id, timeout timer id)
    """
    interval_id = scheduler.set_interval(lambda: log("Interval"), interval)

    def cancel():
        scheduler.clear_interval(interval_id)
        log("Interval canceled")

    timeout_id = scheduler.set_timeout(cancel, cancel_after)
    return interval_id, timeout_id


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="timer-demo",
        description="Print a line on an interval, then cancel the interval after a delay.")
    parser.add_argument("--interval", type=float, default=INTERVAL,
                        help="seconds between interval callbacks (default: %(default)s)")
    parser.add_argument("--cancel-after", type=float, default=CANCEL_AFTER,
                        help="seconds until the interval is canceled (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log timer activity to stderr")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    with TimerScheduler() as scheduler:
        run_demo(scheduler, interval=args.interval, cancel_after=args.cancel_after)
        scheduler.run()
    logger.debug("no timers left, exiting")
    return 0
