""" Select muons and Michel electrons

    The :class:`EventClassifier` is fed the event records of a dataset in
    the order in which they were recorded.  It remembers the start time of
    the last accepted muon, which is needed to determine the time
    difference between a Michel electron candidate and the muon that
    preceded it.

    After all events of a dataset are classified :meth:`EventClassifier.finish`
    fills the energies of the muons which were followed by a Michel
    electron candidate.  A new classifier must be used for each dataset.

    Example usage::

        classifier = EventClassifier(Distributions())
        for record in records:
            classifier.classify(record)
        counters = classifier.finish()

"""
from collections import Counter
import logging
import warnings

from ..parameters import AnalysisParameters

logger = logging.getLogger('mudecay.classification')


class ClassificationCounters(object):

    """Number of events, muons, Michel electrons and trigger codes"""

    def __init__(self):
        self.n_events = 0
        self.n_muons = 0
        self.n_michels = 0
        self.triggers = Counter()

    def add(self, other):
        self.n_events += other.n_events
        self.n_muons += other.n_muons
        self.n_michels += other.n_michels
        self.triggers.update(other.triggers)

    def __eq__(self, other):
        if not isinstance(other, ClassificationCounters):
            return NotImplemented
        return ((self.n_events, self.n_muons, self.n_michels,
                 self.triggers) ==
                (other.n_events, other.n_muons, other.n_michels,
                 other.triggers))

    def __repr__(self):
        return ("%s(n_events=%d, n_muons=%d, n_michels=%d)" %
                (self.__class__.__name__, self.n_events, self.n_muons,
                 self.n_michels))


class MuonMichelAssociation(object):

    """Link muons to the Michel electron candidates that followed them

    All muons are buffered while the dataset is classified, together with
    the set of muon times to which a Michel candidate was attributed.  The
    muons in that set are selected afterwards.

    """

    def __init__(self):
        self.muons = []
        self.michel_muon_times = set()

    def add_muon(self, time, energy):
        self.muons.append((time, energy))

    def add_michel(self, muon_time):
        self.michel_muon_times.add(muon_time)

    def muons_with_michel(self):
        """Energies of the muons followed by a Michel candidate

        A muon time which occurs more than once is only selected for its
        first muon.

        :return: list of (time, energy) tuples in order of arrival.

        """
        selected = []
        seen = set()
        for time, energy in self.muons:
            if time in self.michel_muon_times and time not in seen:
                selected.append((time, energy))
                seen.add(time)
        return selected


class EventClassifier(object):

    """Classify the events of a single dataset"""

    def __init__(self, distributions, parameters=None, last_muon_time=None):
        """Initialize the classifier

        :param distributions: :class:`~mudecay.analysis.distributions.Distributions`
                              in which to accumulate the observables.
        :param parameters: :class:`~mudecay.parameters.AnalysisParameters`.
        :param last_muon_time: time of the last muon before the first event,
                               the configured initial time if None.

        """
        if parameters is None:
            parameters = AnalysisParameters()
        self.parameters = parameters
        self.distributions = distributions
        if last_muon_time is None:
            last_muon_time = parameters.INITIAL_MUON_TIME
        self.last_muon_time = last_muon_time
        self.counters = ClassificationCounters()
        self.association = MuonMichelAssociation()
        self.finished = False

    def classify(self, record):
        """Classify the next event of the dataset

        Sets the is_muon, is_michel and last_muon_time attributes of the
        record and fills the distributions.

        :param record: :class:`~mudecay.analysis.process_events.EventRecord`.
        :return: the record.

        """
        if self.finished:
            raise RuntimeError("The dataset was already finished, use a new "
                               "classifier for the next dataset.")
        self.counters.n_events += 1
        self.counters.triggers[record.trigger] += 1
        self.distributions.trigger_bits.fill(record.trigger)
        self.check_trigger(record)

        previous_muon_time = self.last_muon_time
        record.is_muon = self.is_muon(record)
        record.is_michel = self.is_michel(record, previous_muon_time)

        if record.is_muon:
            self.counters.n_muons += 1
            self.last_muon_time = record.start
            self.association.add_muon(record.start, record.energy)
            self.distributions.side_sipm_muon.fill(record.side_sipm_energy)
            self.distributions.top_sipm_muon.fill(record.top_sipm_energy)

        if record.is_michel:
            dt = record.start - previous_muon_time
            self.counters.n_michels += 1
            self.association.add_michel(previous_muon_time)
            self.distributions.energy_vs_dt.fill(dt, record.energy)
            self.distributions.michel_energy.fill(record.energy)
            if record.energy <= self.parameters.MICHEL_ENERGY_MAX_DT:
                self.distributions.dt_michel.fill(dt)

        record.last_muon_time = self.last_muon_time
        return record

    def check_trigger(self, record):
        """Warn about trigger codes outside the trigger histogram"""

        histogram = self.distributions.trigger_bits
        if not histogram.low <= record.trigger < histogram.high:
            warnings.warn("Trigger bits %d of event %d outside the histogram "
                          "range (%d-%d)" % (record.trigger, record.event_id,
                                             histogram.low,
                                             histogram.high - 1))

    def sipm_hit(self, record):
        """True if any SiPM channel is above its threshold"""

        return any(energy > threshold for energy, threshold in
                   zip(record.sipm_energies, self.parameters.SIPM_THRESHOLDS))

    def is_muon(self, record):
        """Check if the event is a muon candidate

        High energy with a hit in the SiPM panels, or half that energy when
        the pulses are cut off by the end of the traces.

        """
        if not self.sipm_hit(record):
            return False
        threshold = self.parameters.MUON_ENERGY_THRESHOLD
        if record.energy > threshold:
            return True
        return record.pulse_at_end and record.energy > threshold / 2

    def is_michel(self, record, last_muon_time):
        """Check if the event is a Michel electron candidate

        :param record: the event record.
        :param last_muon_time: start of the muon preceding this event.

        """
        p = self.parameters
        dt = record.start - last_muon_time
        return (p.MICHEL_ENERGY_MIN <= record.energy <= p.MICHEL_ENERGY_MAX and
                p.MICHEL_DT_MIN <= dt <= p.MICHEL_DT_MAX and
                record.number >= p.MICHEL_MIN_MULTIPLICITY and
                not self.sipm_hit(record) and
                record.trigger not in p.MICHEL_EXCLUDED_TRIGGERS)

    def finish(self):
        """Complete the dataset

        Fill the muon energy distribution with the muons that were followed
        by a Michel electron candidate.

        :return: :class:`ClassificationCounters` of the dataset.

        """
        if not self.finished:
            for _, energy in self.association.muons_with_michel():
                self.distributions.muon_energy.fill(energy)
            self.finished = True
            logger.info("Events: %d, muons: %d, Michel electrons: %d",
                        self.counters.n_events, self.counters.n_muons,
                        self.counters.n_michels)
        return self.counters
