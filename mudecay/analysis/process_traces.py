""" Process detector traces

    This module finds pulses in the (baseline subtracted) waveforms of the
    PMTs and determines the other trace observables needed for the event
    selection: the tail integrals of the SiPM panels, the beam monitor
    integral and whether pulses are cut off at the end of the traces.

    The :class:`PulseFinder` works on a single trace, the
    :class:`EventTraces` applies it to all channels of an event.

    Times are in us, relative to the first sample of the trace.

"""
from numpy import array
from lazy import lazy

from ..parameters import AnalysisParameters


ADC_TIME_PER_SAMPLE = AnalysisParameters.ADC_TIME_PER_SAMPLE
PULSE_THRESHOLD = AnalysisParameters.PULSE_THRESHOLD
BS_UNCERTAINTY = AnalysisParameters.BS_UNCERTAINTY
TAIL_START = AnalysisParameters.TAIL_START

#: Fraction of the peak above which samples extend the pulse start
START_FRACTION = 0.1


def tail_integral(trace, first=TAIL_START):
    """Sum of the trace from sample first onwards"""

    return float(sum(trace[first:]))


class PulseCandidate(object):

    """A pulse found in a single trace

    :param start,end: time of the first and last sample in us.
    :param peak: maximum amplitude.
    :param energy: integral of the pulse.

    """

    __slots__ = ('start', 'end', 'peak', 'energy')

    def __init__(self, start, end, peak, energy):
        self.start = start
        self.end = end
        self.peak = peak
        self.energy = energy

    def __eq__(self, other):
        if not isinstance(other, PulseCandidate):
            return NotImplemented
        return ((self.start, self.end, self.peak, self.energy) ==
                (other.start, other.end, other.peak, other.energy))

    def __repr__(self):
        return ("%s(start=%r, end=%r, peak=%r, energy=%r)" %
                (self.__class__.__name__, self.start, self.end, self.peak,
                 self.energy))


class PulseFinder(object):

    """Find pulses in a trace

    A pulse starts at the first sample at or above the threshold and ends
    at the first sample below the baseline uncertainty, or at the end of
    the trace.  Each pulse is then walked backwards, starting from its
    peak, to recover the rising edge before the threshold crossing.  The
    energy of a pulse is the sum of all samples from its start up to and
    including its end.

    """

    def __init__(self, threshold=PULSE_THRESHOLD, uncertainty=BS_UNCERTAINTY,
                 time_per_sample=ADC_TIME_PER_SAMPLE):
        """Initialize the class

        :param threshold: pulse threshold in ADC counts.
        :param uncertainty: uncertainty of the baseline in ADC counts.
        :param time_per_sample: sample period in us.

        """
        self.threshold = threshold
        self.uncertainty = uncertainty
        self.time_per_sample = time_per_sample

    def find_pulses(self, trace):
        """Find all pulses in a trace

        :param trace: baseline subtracted trace in ADC counts.
        :return: list of :class:`PulseCandidate`, in ADC counts.

        """
        pulses = []
        last = len(trace) - 1
        on_pulse = False

        for idx, value in enumerate(trace):
            if not on_pulse:
                if value < self.threshold:
                    continue
                on_pulse = True
                threshold_idx = peak_idx = idx
                peak = energy = value
                if idx != last:
                    continue
            else:
                energy += value
                if value > peak:
                    peak = value
                    peak_idx = idx
                if value >= self.uncertainty and idx != last:
                    continue

            start_idx = self.walk_back(trace, threshold_idx, peak_idx, peak)
            energy += sum(trace[start_idx:threshold_idx])
            pulses.append(PulseCandidate(start_idx * self.time_per_sample,
                                         idx * self.time_per_sample,
                                         float(peak), float(energy)))
            on_pulse = False

        return pulses

    def walk_back(self, trace, threshold_idx, peak_idx, peak):
        """Find the start of the rising edge of a pulse

        Walk from the sample before the peak towards the start of the trace
        while the samples are above the baseline uncertainty.  Samples
        before the threshold crossing which are above 10% of the peak move
        the start of the pulse.

        :param trace: baseline subtracted trace.
        :param threshold_idx: index of the threshold crossing.
        :param peak_idx: index of the peak.
        :param peak: value of the peak.
        :return: index of the pulse start, never after the threshold
                 crossing.

        """
        start_idx = threshold_idx
        for idx in range(peak_idx - 1, -1, -1):
            value = trace[idx]
            if value <= self.uncertainty:
                break
            if idx < threshold_idx and value > START_FRACTION * peak:
                start_idx = idx
        return start_idx

    def __repr__(self):
        return ("%s(threshold=%r, uncertainty=%r, time_per_sample=%r)" %
                (self.__class__.__name__, self.threshold, self.uncertainty,
                 self.time_per_sample))


class EventTraces(object):

    """Trace observables for all channels of an event

    The traces are baseline subtracted on creation.  All observables are
    determined on first access.

    """

    def __init__(self, adc_values, baselines, gains, parameters=None):
        """Initialize the class

        :param adc_values: raw traces, one row of samples per channel.
        :param baselines: baseline of each channel in ADC counts.
        :param gains: :class:`~mudecay.analysis.gain_calibration.GainTable`.
        :param parameters: :class:`~mudecay.parameters.AnalysisParameters`.

        """
        if parameters is None:
            parameters = AnalysisParameters()
        self.parameters = parameters
        self.gains = gains
        self.adc_values = array(adc_values, dtype='float64')
        self.baselines = array(baselines, dtype='float64')
        if self.adc_values.shape[0] != len(self.baselines):
            raise ValueError('Number of traces and baselines does not match')
        self.finder = PulseFinder(parameters.PULSE_THRESHOLD,
                                  parameters.BS_UNCERTAINTY,
                                  parameters.ADC_TIME_PER_SAMPLE)

    @lazy
    def traces(self):
        """Baseline subtracted traces, ordered such that the first element
        is the first sample of each trace

        """
        return (self.adc_values - self.baselines[:, None]).T

    @lazy
    def pulses(self):
        """Pulses in each of the PMT traces

        Peak and energy are in p.e. for calibrated PMTs.

        :return: list with a list of :class:`PulseCandidate` for each PMT.

        """
        pulses = []
        for pmt in range(self.parameters.N_PMTS):
            channel = self.parameters.PMT_CHANNEL_MAP[pmt]
            pulses.append([self.to_photoelectrons(pulse, pmt) for pulse in
                           self.finder.find_pulses(self.traces[:, channel])])
        return pulses

    def to_photoelectrons(self, pulse, pmt):
        to_pe = self.gains.to_photoelectrons
        return PulseCandidate(pulse.start, pulse.end,
                              float(to_pe(pulse.peak, pmt)),
                              float(to_pe(pulse.energy, pmt)))

    @lazy
    def sipm_energies(self):
        """Tail integrals of the SiPM channels, side panel first

        The top panel integrals include their cross-calibration factors.

        """
        first = self.parameters.TAIL_START
        energies = [tail_integral(self.traces[:, channel], first)
                    for channel in self.parameters.SIDE_SIPM_CHANNELS]
        for channel, factor in zip(self.parameters.TOP_SIPM_CHANNELS,
                                   self.parameters.TOP_SIPM_FACTORS):
            energies.append(factor *
                            tail_integral(self.traces[:, channel], first))
        return energies

    @lazy
    def beam_integral(self):
        """Integral of the complete beam monitor trace"""

        return tail_integral(self.traces[:, self.parameters.BEAM_CHANNEL], 0)

    @lazy
    def pulse_at_end(self):
        """True if enough PMT traces are still high at the last sample"""

        last_samples = [self.traces[-1, self.parameters.PMT_CHANNEL_MAP[pmt]]
                        for pmt in range(self.parameters.N_PMTS)]
        n_high = sum(1 for value in last_samples
                     if value > self.parameters.PULSE_AT_END_THRESHOLD)
        return n_high >= self.parameters.PULSE_AT_END_MIN_CHANNELS
