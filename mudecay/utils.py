"""Utilities

The module contains some commonly used functions.

"""
from collections import Counter

from numpy import exp
from progressbar import ProgressBar, ETA, Bar, Percentage


def pbar(iterable, length=None, show=True, **kwargs):
    """Get a new progressbar with our default widgets

    :param iterable: the iterable over which will be looped.
    :param length: in case iterable is a generator, this should be its
                   expected length.
    :param show: boolean, if False simply return the iterable.
    :return: a new iterable which iterates over the same elements as
             the input, but shows a progressbar if possible.

    """
    if not show:
        return iterable

    if length is None:
        try:
            length = len(iterable)
        except TypeError:
            pass

    if length:
        pb = ProgressBar(max_value=length,
                         widgets=[Percentage(), Bar(), ETA()], **kwargs)
        return pb(iterable)
    else:
        return iterable


def gauss(x, n, mu, sigma):
    """Gaussian peak

    Unlike a probability density this is not normalised, ``n`` is the
    height of the peak.  This is the shape used for the SPE fit.

    """
    return n * exp(-0.5 * ((x - mu) / sigma) ** 2)


def mean(values):
    """Arithmetic mean, 0 for an empty list"""

    if not len(values):
        return 0.
    return sum(values) / len(values)


def mode_else_mean(values):
    """Most frequent value, or the mean if no value occurs twice

    If several values occur equally often the smallest of them is
    returned.  An empty list gives 0.

    :param values: list of values, e.g. pulse start times.
    :return: the most frequent value or the mean of all values.

    """
    if not len(values):
        return 0.
    counts = Counter(values)
    max_count = max(counts.values())
    if max_count < 2:
        return mean(values)
    return min(value for value, count in counts.items()
               if count == max_count)


def sample_variance(values):
    """Unbiased variance, 0 if there are less than two values"""

    if len(values) <= 1:
        return 0.
    m = mean(values)
    return sum((v - m) ** 2 for v in values) / (len(values) - 1)
