""" Process detector events

    This module combines the pulses found in all channels of an event into
    a single :class:`EventRecord`, which is used for the muon and Michel
    electron selection.

    Example usage::

        import tables

        from mudecay.analysis.gain_calibration import GainTable
        from mudecay.analysis.process_events import EventAggregator

        with tables.open_file('run.h5', 'r') as data:
            gains = GainTable.read(data.root.gains)
            aggregator = EventAggregator(gains)
            records = [aggregator.process_event(event)
                       for event in data.root.events]

"""
from ..parameters import AnalysisParameters
from ..utils import mode_else_mean, sample_variance
from .process_traces import EventTraces


class EventRecord(object):

    """Observables and classification of a single event

    Times are in us, PMT peak and energy in p.e. (ADC counts for
    uncalibrated PMTs) and SiPM energies in ADC counts.

    .. attribute:: start, end

        event trigger time plus the start (end) time agreed on by the PMTs.

    .. attribute:: peak, energy

        sums over all PMT pulses.

    .. attribute:: number

        number of PMTs with a pulse above 1 p.e.

    .. attribute:: single

        True if the PMT pulses agree on the start time.

    .. attribute:: beam

        True if the beam was on.

    .. attribute:: sipm_energies

        tail integral of each SiPM channel, side panel first.

    .. attribute:: last_muon_time

        start of the last muon at the time this event was classified.

    """

    fields = ['event_id', 'start', 'end', 'peak', 'energy', 'number',
              'single', 'beam', 'trigger', 'side_sipm_energy',
              'top_sipm_energy', 'all_sipm_energy', 'pulse_at_end',
              'last_muon_time', 'is_muon', 'is_michel']

    def __init__(self, start, end=None, peak=0., energy=0., number=0,
                 single=False, beam=False, trigger=0, sipm_energies=None,
                 n_side_sipms=len(AnalysisParameters.SIDE_SIPM_CHANNELS),
                 pulse_at_end=False, event_id=-1):
        self.event_id = event_id
        self.start = start
        self.end = start if end is None else end
        self.peak = peak
        self.energy = energy
        self.number = number
        self.single = single
        self.beam = beam
        self.trigger = trigger
        self.sipm_energies = list(sipm_energies or [])
        self.side_sipm_energy = sum(self.sipm_energies[:n_side_sipms])
        self.top_sipm_energy = sum(self.sipm_energies[n_side_sipms:])
        self.all_sipm_energy = self.side_sipm_energy + self.top_sipm_energy
        self.pulse_at_end = pulse_at_end
        self.last_muon_time = None
        self.is_muon = False
        self.is_michel = False

    def as_row(self):
        """Values in the order of :class:`~mudecay.storage.ProcessedEvent`"""

        last_muon_time = self.last_muon_time
        if last_muon_time is None:
            last_muon_time = float('nan')
        return tuple(last_muon_time if field == 'last_muon_time'
                     else getattr(self, field) for field in self.fields)

    def __repr__(self):
        return ("%s(start=%r, energy=%r, number=%r, trigger=%r)" %
                (self.__class__.__name__, self.start, self.energy,
                 self.number, self.trigger))


class EventAggregator(object):

    """Combine the PMT pulses and SiPM integrals of an event"""

    def __init__(self, gains, parameters=None):
        """Initialize the class

        :param gains: :class:`~mudecay.analysis.gain_calibration.GainTable`.
        :param parameters: :class:`~mudecay.parameters.AnalysisParameters`.

        """
        if parameters is None:
            parameters = AnalysisParameters()
        self.gains = gains
        self.parameters = parameters

    def process_event(self, event):
        """Determine the event record for a recorded event

        :param event: row with 'ns_time', 'trigger_bits', 'adc_values' and
                      'baseline_mean', optionally 'event_id'.
        :return: :class:`EventRecord`.

        """
        traces = EventTraces(event['adc_values'], event['baseline_mean'],
                             self.gains, self.parameters)
        try:
            event_id = int(event['event_id'])
        except (KeyError, IndexError, ValueError):
            event_id = -1
        return self.aggregate(event['ns_time'] / 1000., event['trigger_bits'],
                              traces.pulses, traces.sipm_energies,
                              traces.beam_integral, traces.pulse_at_end,
                              event_id)

    def aggregate(self, trigger_time, trigger, pulses, sipm_energies,
                  beam_integral, pulse_at_end=False, event_id=-1):
        """Combine the channel observables into an event record

        :param trigger_time: trigger time of the event in us.
        :param trigger: trigger code.
        :param pulses: list of :class:`PulseCandidate` lists, one per PMT.
        :param sipm_energies: tail integral of each SiPM channel.
        :param beam_integral: integral of the beam monitor trace.
        :param pulse_at_end: True if the pulses are cut off by the end of
                             the traces.
        :return: :class:`EventRecord`.

        """
        all_pulses = [pulse for channel in pulses for pulse in channel]
        starts = [pulse.start for pulse in all_pulses]
        ends = [pulse.end for pulse in all_pulses]

        number = sum(1 for channel in pulses
                     if any(pulse.energy > self.parameters.MIN_CHANNEL_ENERGY
                            for pulse in channel))

        return EventRecord(
            start=trigger_time + mode_else_mean(starts),
            end=trigger_time + mode_else_mean(ends),
            peak=sum(pulse.peak for pulse in all_pulses),
            energy=sum(pulse.energy for pulse in all_pulses),
            number=number,
            single=self.is_single(starts),
            beam=beam_integral > self.parameters.EV61_THRESHOLD,
            trigger=int(trigger),
            sipm_energies=sipm_energies,
            n_side_sipms=len(self.parameters.SIDE_SIPM_CHANNELS),
            pulse_at_end=pulse_at_end,
            event_id=event_id)

    def is_single(self, starts):
        """Check if the PMT start times agree

        Start times far from the most frequent start time are ignored, the
        others must have a small variance.

        :param starts: start times of all PMT pulses in us.

        """
        period = self.parameters.ADC_TIME_PER_SAMPLE
        window = self.parameters.SINGLE_WINDOW * period
        modal_start = mode_else_mean(starts)
        near_starts = [start * 1e3 for start in starts
                       if abs(start - modal_start) < window]
        return (sample_variance(near_starts) <
                self.parameters.SINGLE_VARIANCE_TOLERANCE)
