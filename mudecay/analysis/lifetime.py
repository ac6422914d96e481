""" Determine the muon lifetime

    The time differences between muons and their Michel electrons follow
    an exponential decay on top of a flat background of random
    coincidences.  The lifetime is obtained from a chi-square fit of

        N(t) = N0 exp(-t / tau) + C

    to the time difference histogram, within a restricted fit window.

"""
import logging
import warnings

from numpy import diag, exp, isfinite, sqrt
from scipy.optimize import curve_fit

from .. import storage
from ..parameters import AnalysisParameters

logger = logging.getLogger('mudecay.lifetime')

#: Background guess if the late time window contains no entries
DEFAULT_BACKGROUND = 0.1
N_PARAMETERS = 3


def exponential_decay(t, n0, tau, background):
    """Exponential decay on a flat background"""

    return n0 * exp(-t / tau) + background


class LifetimeFitResult(object):

    """Fitted parameters of the decay model

    :param popt: fitted N0, tau and C.
    :param perr: standard errors of the parameters.
    :param chi2: chi-square of the fit.
    :param ndf: number of degrees of freedom.

    """

    def __init__(self, popt, perr, chi2, ndf):
        self.n0, self.tau, self.background = [float(p) for p in popt]
        self.n0_error, self.tau_error, self.background_error = \
            [float(e) for e in perr]
        self.chi2 = float(chi2)
        self.ndf = int(ndf)

    @property
    def reduced_chi2(self):
        if self.ndf > 0:
            return self.chi2 / self.ndf
        return 0.

    def store(self, data, group='/', name='lifetime'):
        """Store the result in a PyTables table"""

        table = data.create_table(group, name, storage.LifetimeFit,
                                  'Muon lifetime fit', createparents=True)
        table.append([(self.tau, self.tau_error, self.n0, self.n0_error,
                       self.background, self.background_error, self.chi2,
                       self.ndf)])
        table.flush()
        return table

    def __str__(self):
        return ("tau = %.4f +/- %.4f us, N0 = %.1f +/- %.1f, "
                "C = %.1f +/- %.1f, chi2/ndf = %.4f" %
                (self.tau, self.tau_error, self.n0, self.n0_error,
                 self.background, self.background_error, self.reduced_chi2))


class LifetimeFit(object):

    """Fit the decay model to a time difference histogram"""

    def __init__(self, histogram, parameters=None):
        """Initialize the class

        :param histogram: :class:`~mudecay.analysis.distributions.Histogram`
                          of the time differences in us.
        :param parameters: :class:`~mudecay.parameters.AnalysisParameters`.

        """
        if parameters is None:
            parameters = AnalysisParameters()
        self.histogram = histogram
        self.parameters = parameters

    def initial_guess(self):
        """Initial values for N0, tau and C

        N0 follows from the number of entries in the fit window and C
        from the smallest non-empty bin at late times.

        """
        p = self.parameters
        h = self.histogram
        integral = h.integral(h.find_bin(p.FIT_MIN), h.find_bin(p.FIT_MAX))
        n0 = integral * h.bin_width / (p.FIT_MAX - p.FIT_MIN)

        low, high = p.BACKGROUND_WINDOW
        first = max(h.find_bin(low), 0)
        last = min(h.find_bin(high), h.n_bins - 1)
        contents = [c for c in h.counts[first:last + 1] if c > 0]
        if contents:
            background = min(contents)
        else:
            background = DEFAULT_BACKGROUND
        return [n0, p.TAU_GUESS, background]

    def bounds(self, guess):
        n0, _, background = guess
        tau_min, tau_max = self.parameters.TAU_LIMITS
        return ([0., tau_min, -10 * background],
                [100 * n0, tau_max, 10 * background])

    def fit(self):
        """Fit the decay model

        :return: :class:`LifetimeFitResult`, or None if the histogram does
                 not contain enough data or the fit fails.

        """
        p = self.parameters
        h = self.histogram
        if h.entries < p.MIN_FIT_ENTRIES:
            warnings.warn("Insufficient entries (%d) in %s, skipping the "
                          "lifetime fit" % (h.entries, h.name))
            return None

        t = h.bin_centers
        counts = h.counts
        selected = (t >= p.FIT_MIN) & (t <= p.FIT_MAX) & (counts > 0)
        if selected.sum() <= N_PARAMETERS:
            warnings.warn("Number of data points not sufficient for the "
                          "lifetime fit")
            return None

        guess = self.initial_guess()
        if not guess[0] > 0:
            warnings.warn("No entries in the lifetime fit window")
            return None

        x = t[selected]
        y = counts[selected]
        sigma = sqrt(y)
        try:
            popt, pcov = curve_fit(exponential_decay, x, y, p0=guess,
                                   sigma=sigma, absolute_sigma=True,
                                   bounds=self.bounds(guess))
        except (RuntimeError, ValueError) as exc:
            warnings.warn("Lifetime fit failed: %s" % exc)
            return None

        perr = sqrt(diag(pcov))
        if not isfinite(perr).all():
            warnings.warn("Lifetime fit errors could not be determined")
        chi2 = (((y - exponential_decay(x, *popt)) / sigma) ** 2).sum()
        result = LifetimeFitResult(popt, perr, chi2, len(x) - N_PARAMETERS)
        logger.info("Exponential fit (%.1f-%.1f us): %s", p.FIT_MIN,
                    p.FIT_MAX, result)
        return result
