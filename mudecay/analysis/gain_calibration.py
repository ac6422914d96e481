""" Determine the single photoelectron gain of the PMTs

    LED flash events (trigger code 16) are used to build a pulse area
    spectrum for each PMT.  A model of four gaussians is fitted to each
    spectrum: the pedestal, the single photoelectron (SPE) peak and the two
    and three photoelectron peaks.  The position of the SPE peak is the
    gain, which converts ADC counts to photoelectrons.

    Example usage::

        import tables

        from mudecay.analysis.gain_calibration import GainCalibration

        with tables.open_file('led_run.h5', 'r') as data:
            calibration = GainCalibration()
            calibration.fill(data.root.calibration)
            gains = calibration.determine_gains()

"""
import logging
import warnings

from numpy import array, clip, diag, inf, maximum, sqrt
from scipy.optimize import curve_fit

from .. import storage
from ..parameters import AnalysisParameters
from ..utils import gauss, pbar
from .distributions import Histogram

logger = logging.getLogger('mudecay.gain_calibration')

#: Lower limit of the variance of the 2 and 3 p.e. peaks
MIN_VARIANCE = 1e-6
#: Lower limit of the fitted peak widths, in ADC counts
MIN_WIDTH = 1e-3
N_SPE_PARAMETERS = 8


def spe_model(x, n0, mu0, sigma0, n1, mu1, sigma1, n2, n3):
    """Pedestal, 1, 2 and 3 photoelectron peaks

    The n photoelectron peak is the n-fold convolution of the single
    photoelectron response on top of the pedestal noise, so its position
    scales with sqrt(n) and its variance with n times the SPE variance
    minus the (n - 1) times counted pedestal variance.

    :param x: pulse area in ADC counts.
    :param n0,mu0,sigma0: height, position and width of the pedestal.
    :param n1,mu1,sigma1: height, position and width of the SPE peak.
    :param n2,n3: heights of the 2 and 3 photoelectron peaks.

    """
    sigma2 = sqrt(maximum(2 * sigma1 ** 2 - sigma0 ** 2, MIN_VARIANCE))
    sigma3 = sqrt(maximum(3 * sigma1 ** 2 - 2 * sigma0 ** 2, MIN_VARIANCE))
    return (gauss(x, n0, mu0, sigma0) +
            gauss(x, n1, mu1, sigma1) +
            gauss(x, n2, sqrt(2) * mu1, sigma2) +
            gauss(x, n3, sqrt(3) * mu1, sigma3))


def initial_spe_parameters(histogram):
    """Initial guesses for the SPE fit

    The mean and RMS of the spectrum differ strongly per PMT, so the
    guesses are derived from those instead of using fixed values.

    :param histogram: :class:`~mudecay.analysis.distributions.Histogram`
                      containing the pulse areas.
    :return: list of the 8 parameters of :func:`spe_model`.

    """
    x = histogram.bin_centers
    y = histogram.counts
    total = y.sum()
    if not total:
        raise RuntimeError("No entries within the histogram range")
    mean = (x * y).sum() / total
    rms = sqrt((y * (x - mean) ** 2).sum() / total)
    height = y.max()
    return [height, mean - rms, rms / 2.,
            height, mean, rms,
            height / 2., height / 5.]


def fit_spe_spectrum(histogram):
    """Fit the SPE model to a pulse area spectrum

    Only bins with entries take part in the fit, with poisson errors.

    :param histogram: :class:`~mudecay.analysis.distributions.Histogram`
                      containing the pulse areas.
    :return: the fitted parameters and their errors.
    :raises RuntimeError: if the fit can not be performed or fails.

    """
    x = histogram.bin_centers
    y = histogram.counts
    populated = y > 0
    if populated.sum() <= N_SPE_PARAMETERS:
        raise RuntimeError("Number of data points not sufficient")

    lower = [0., histogram.low, MIN_WIDTH, 0., 0., MIN_WIDTH, 0., 0.]
    upper = [inf, histogram.high, inf, inf, histogram.high, inf, inf, inf]
    p0 = clip(initial_spe_parameters(histogram), lower, upper)

    popt, pcov = curve_fit(spe_model, x[populated], y[populated], p0=p0,
                           sigma=sqrt(y[populated]), absolute_sigma=True,
                           bounds=(lower, upper))
    return popt, sqrt(diag(pcov))


class GainTable(object):

    """Single photoelectron gains of the PMTs

    The table can not be modified after creation.  A gain of 0 marks a
    PMT without calibration; values of such PMTs stay in ADC counts.

    """

    def __init__(self, gains, gain_errors=None):
        """Initialize the table

        :param gains: gain for each PMT in ADC counts per p.e.
        :param gain_errors: uncertainty of the gains, zeros if None.

        """
        gains = array(gains, dtype='float64')
        if gain_errors is None:
            gain_errors = [0.] * len(gains)
        gain_errors = array(gain_errors, dtype='float64')
        if len(gains) != len(gain_errors):
            raise ValueError('Number of gains and errors does not match')
        if (gains < 0).any():
            raise ValueError('Gains can not be negative')
        gains.setflags(write=False)
        gain_errors.setflags(write=False)
        self.gains = gains
        self.gain_errors = gain_errors

    @classmethod
    def uncalibrated(cls, n_pmts=AnalysisParameters.N_PMTS):
        """Table for which all PMTs are uncalibrated"""

        return cls([0.] * n_pmts)

    @classmethod
    def read(cls, table):
        """Create the table from a PyTables table of :class:`Gain` rows"""

        rows = sorted(table.read(), key=lambda row: row['channel'])
        return cls([row['gain'] for row in rows],
                   [row['gain_error'] for row in rows])

    def store(self, data, group='/', name='gains'):
        """Store the gains in a PyTables file

        :param data: writeable PyTables file handle.
        :param group: path to the group (need not exist).
        :param name: name of the table.

        """
        table = data.create_table(group, name, storage.Gain,
                                  'Single photoelectron gains',
                                  createparents=True)
        table.append([(channel, gain, error)
                      for channel, (gain, error) in enumerate(self)])
        table.flush()
        return table

    def __len__(self):
        return len(self.gains)

    def __getitem__(self, channel):
        return self.gains[channel], self.gain_errors[channel]

    def __iter__(self):
        return zip(self.gains, self.gain_errors)

    def gain(self, channel):
        """Gain of a channel, 0 for channels not in the table"""

        if 0 <= channel < len(self.gains):
            return self.gains[channel]
        return 0.

    def is_calibrated(self, channel):
        return self.gain(channel) > 0

    def to_photoelectrons(self, value, channel):
        """Convert a value in ADC counts to p.e. if the channel is calibrated"""

        if self.is_calibrated(channel):
            return value / self.gain(channel)
        return value

    def __repr__(self):
        return "%s(%r, %r)" % (self.__class__.__name__, self.gains.tolist(),
                               self.gain_errors.tolist())


class GainCalibration(object):

    """Determine the PMT gains from LED flash samples"""

    def __init__(self, parameters=None, progress=False):
        """Initialize the class

        :param parameters: :class:`~mudecay.parameters.AnalysisParameters`,
                           defaults are used if None.
        :param progress: show a progressbar while filling.

        """
        if parameters is None:
            parameters = AnalysisParameters()
        self.parameters = parameters
        self.progress = progress
        low, high = parameters.CALIBRATION_RANGE
        self.histograms = [Histogram('pmt%d_area' % (pmt + 1),
                                     parameters.CALIBRATION_BINS, low, high,
                                     'PMT %d area [ADC]' % (pmt + 1))
                           for pmt in range(parameters.N_PMTS)]

    def fill(self, samples):
        """Add calibration samples to the area spectra

        :param samples: iterable of rows with 'trigger_bits' and 'area'.
        :return: number of accepted LED flash samples.

        """
        n_flashes = 0
        for sample in pbar(samples, show=self.progress):
            if self.fill_sample(sample):
                n_flashes += 1
        logger.info("Accepted %d LED flashes", n_flashes)
        return n_flashes

    def fill_sample(self, sample):
        """Add the areas of a single sample if it is an LED flash

        :return: True if the sample was accepted.

        """
        if sample['trigger_bits'] != self.parameters.CALIBRATION_TRIGGER:
            return False
        area = sample['area']
        for pmt, histogram in enumerate(self.histograms):
            histogram.fill(area[self.parameters.PMT_CHANNEL_MAP[pmt]])
        return True

    def determine_gains(self):
        """Determine the gains of all PMTs

        :return: :class:`GainTable`.

        """
        gains = []
        gain_errors = []
        for histogram in self.histograms:
            gain, gain_error = self.determine_gain(histogram)
            gains.append(gain)
            gain_errors.append(gain_error)
        return GainTable(gains, gain_errors)

    def determine_gain(self, histogram):
        """Determine the gain from a single area spectrum

        The uncertainty combines the fit error of the SPE position with the
        SPE width divided by the square root of the number of flashes.

        :param histogram: the area spectrum of a PMT.
        :return: gain and its uncertainty, both 0 if the spectrum has too
                 few entries or can not be fitted.

        """
        if histogram.entries < self.parameters.MIN_CALIBRATION_ENTRIES:
            warnings.warn("Insufficient data for %s (%d entries)" %
                          (histogram.name, histogram.entries))
            return 0., 0.
        try:
            popt, perr = fit_spe_spectrum(histogram)
        except (RuntimeError, ValueError) as exc:
            warnings.warn("SPE fit failed for %s: %s" % (histogram.name, exc))
            return 0., 0.
        gain = popt[4]
        gain_error = sqrt(perr[4] ** 2 +
                          (popt[5] / sqrt(histogram.entries)) ** 2)
        logger.info("%s: gain = %.2f +/- %.2f ADC/p.e.", histogram.name,
                    gain, gain_error)
        return gain, gain_error
