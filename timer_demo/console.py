"""Console output used by timer callbacks."""

import sys


def log(*args, file=None):
    """
    Print the arguments separated by single spaces.

    Output goes to stdout unless another stream is passed in file,
    and is flushed right away so lines written from the event loop
    show up in firing order.
    """
    if file is None:
        file = sys.stdout
    print(" ".join(str(arg) for arg in args), file=file, flush=True)
