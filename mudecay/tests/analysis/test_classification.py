import unittest
import warnings

from mudecay.analysis import classification
from mudecay.analysis.distributions import Distributions
from mudecay.analysis.process_events import EventRecord
from mudecay.parameters import AnalysisParameters


SIPM_HIT = [800.] + [0.] * 9
NO_SIPM_HIT = [0.] * 10


def muon(start, energy=200., **kwargs):
    kwargs.setdefault('sipm_energies', SIPM_HIT)
    return EventRecord(start, energy=energy, number=12, trigger=2, **kwargs)


def michel(start, energy=100., number=9, trigger=2, **kwargs):
    kwargs.setdefault('sipm_energies', NO_SIPM_HIT)
    return EventRecord(start, energy=energy, number=number, trigger=trigger,
                       **kwargs)


class ClassificationCountersTests(unittest.TestCase):

    def test_add(self):
        counters = classification.ClassificationCounters()
        other = classification.ClassificationCounters()
        other.n_events = 3
        other.n_muons = 2
        other.n_michels = 1
        other.triggers[2] = 3
        counters.add(other)
        counters.add(other)
        self.assertEqual((counters.n_events, counters.n_muons,
                          counters.n_michels), (6, 4, 2))
        self.assertEqual(counters.triggers[2], 6)


class MuonMichelAssociationTests(unittest.TestCase):

    def test_only_muons_with_michel(self):
        association = classification.MuonMichelAssociation()
        association.add_muon(0., 200.)
        association.add_muon(100., 300.)
        association.add_muon(200., 400.)
        association.add_michel(100.)
        association.add_michel(200.)
        self.assertEqual(association.muons_with_michel(),
                         [(100., 300.), (200., 400.)])

    def test_duplicate_muon_time(self):
        association = classification.MuonMichelAssociation()
        association.add_muon(100., 300.)
        association.add_muon(100., 500.)
        association.add_michel(100.)
        self.assertEqual(association.muons_with_michel(), [(100., 300.)])


class SelectionTests(unittest.TestCase):

    def setUp(self):
        self.classifier = classification.EventClassifier(Distributions())

    def test_muon(self):
        self.assertTrue(self.classifier.is_muon(muon(0., 60.)))

    def test_muon_needs_sipm_hit(self):
        record = muon(0., 60., sipm_energies=NO_SIPM_HIT)
        self.assertFalse(self.classifier.is_muon(record))

    def test_muon_energy_threshold(self):
        self.assertFalse(self.classifier.is_muon(muon(0., 50.)))

    def test_muon_pulse_at_end(self):
        self.assertTrue(self.classifier.is_muon(
            muon(0., 30., pulse_at_end=True)))
        self.assertFalse(self.classifier.is_muon(
            muon(0., 25., pulse_at_end=True)))
        self.assertFalse(self.classifier.is_muon(muon(0., 30.)))

    def test_sipm_thresholds(self):
        thresholds = AnalysisParameters.SIPM_THRESHOLDS
        for channel, threshold in enumerate(thresholds):
            energies = [0.] * 10
            energies[channel] = threshold
            self.assertFalse(self.classifier.sipm_hit(
                EventRecord(0., sipm_energies=energies)))
            energies[channel] = threshold + 1
            self.assertTrue(self.classifier.sipm_hit(
                EventRecord(0., sipm_energies=energies)))

    def test_michel(self):
        self.assertTrue(self.classifier.is_michel(michel(2.), 0.))

    def test_michel_dt_bounds_inclusive(self):
        self.assertTrue(self.classifier.is_michel(michel(0.76), 0.))
        self.assertTrue(self.classifier.is_michel(michel(16.), 0.))
        self.assertFalse(self.classifier.is_michel(michel(0.759), 0.))
        self.assertFalse(self.classifier.is_michel(michel(16.001), 0.))

    def test_michel_energy_bounds_inclusive(self):
        self.assertTrue(self.classifier.is_michel(michel(2., 40.), 0.))
        self.assertTrue(self.classifier.is_michel(michel(2., 1000.), 0.))
        self.assertFalse(self.classifier.is_michel(michel(2., 39.), 0.))
        self.assertFalse(self.classifier.is_michel(michel(2., 1001.), 0.))

    def test_michel_multiplicity(self):
        self.assertTrue(self.classifier.is_michel(michel(2., number=8), 0.))
        self.assertFalse(self.classifier.is_michel(michel(2., number=7), 0.))

    def test_michel_excluded_triggers(self):
        for trigger in [1, 4, 8, 16]:
            self.assertFalse(self.classifier.is_michel(
                michel(2., trigger=trigger), 0.))

    def test_michel_no_sipm_hit(self):
        record = michel(2., sipm_energies=SIPM_HIT)
        self.assertFalse(self.classifier.is_michel(record, 0.))


class EventClassifierTests(unittest.TestCase):

    def setUp(self):
        self.distributions = Distributions()
        self.classifier = classification.EventClassifier(self.distributions)

    def classify(self, records):
        for record in records:
            self.classifier.classify(record)
        return self.classifier.finish()

    def test_muon_and_michel(self):
        records = [muon(0.), michel(2.)]
        counters = self.classify(records)

        self.assertEqual((counters.n_events, counters.n_muons,
                          counters.n_michels), (2, 1, 1))
        self.assertTrue(records[0].is_muon)
        self.assertFalse(records[0].is_michel)
        self.assertTrue(records[1].is_michel)
        self.assertEqual(records[1].last_muon_time, 0.)

        muon_energy = self.distributions.muon_energy
        self.assertEqual(muon_energy.entries, 1)
        self.assertEqual(muon_energy.counts[muon_energy.find_bin(200.)], 1)
        dt_michel = self.distributions.dt_michel
        self.assertEqual(dt_michel.entries, 1)
        self.assertEqual(dt_michel.counts[dt_michel.find_bin(2.)], 1)
        self.assertEqual(self.distributions.michel_energy.entries, 1)
        self.assertEqual(self.distributions.energy_vs_dt.entries, 1)
        self.assertEqual(self.distributions.side_sipm_muon.entries, 1)
        self.assertEqual(self.distributions.trigger_bits.counts[2], 2)

    def test_michel_uses_previous_muon(self):
        records = [muon(0., 200.), muon(100., 300.), michel(102.)]
        self.classify(records)

        self.assertEqual(records[2].last_muon_time, 100.)
        muon_energy = self.distributions.muon_energy
        self.assertEqual(muon_energy.entries, 1)
        self.assertEqual(muon_energy.counts[muon_energy.find_bin(300.)], 1)
        dt_michel = self.distributions.dt_michel
        self.assertEqual(dt_michel.counts[dt_michel.find_bin(2.)], 1)

    def test_muon_updates_last_muon_time(self):
        record = michel(2., energy=100., sipm_energies=SIPM_HIT)
        self.classifier.classify(record)
        self.assertTrue(record.is_muon)
        self.assertFalse(record.is_michel)
        self.assertEqual(record.last_muon_time, 2.)

    def test_no_michel_no_muon_energy(self):
        self.classify([muon(0.), muon(50.)])
        self.assertEqual(self.distributions.muon_energy.entries, 0)
        self.assertEqual(self.distributions.side_sipm_muon.entries, 2)

    def test_high_energy_michel_not_in_dt(self):
        self.classify([muon(0.), michel(2., energy=500.)])
        self.assertEqual(self.distributions.michel_energy.entries, 1)
        self.assertEqual(self.distributions.dt_michel.entries, 0)
        self.assertEqual(self.distributions.muon_energy.entries, 1)

    def test_initial_muon_time(self):
        parameters = AnalysisParameters(INITIAL_MUON_TIME=10.)
        classifier = classification.EventClassifier(Distributions(),
                                                    parameters)
        self.assertEqual(classifier.last_muon_time, 10.)
        classifier = classification.EventClassifier(Distributions(),
                                                    last_muon_time=5.)
        self.assertEqual(classifier.last_muon_time, 5.)

    def test_deterministic(self):
        def make_records():
            return [muon(0.), michel(1.), michel(3.), muon(20.),
                    michel(25., energy=30.), muon(40., 30., pulse_at_end=True),
                    michel(41., trigger=4), michel(45.)]

        first = make_records()
        second = make_records()
        counters = self.classify(first)
        other = classification.EventClassifier(Distributions())
        for record in second:
            other.classify(record)
        self.assertEqual(other.finish(), counters)
        self.assertEqual([(r.is_muon, r.is_michel) for r in first],
                         [(r.is_muon, r.is_michel) for r in second])
        self.assertEqual((counters.n_muons, counters.n_michels), (3, 3))

    def test_finish_is_idempotent(self):
        counters = self.classify([muon(0.), michel(2.)])
        self.assertIs(self.classifier.finish(), counters)
        self.assertEqual(self.distributions.muon_energy.entries, 1)

    def test_classify_after_finish(self):
        self.classify([muon(0.)])
        self.assertRaises(RuntimeError, self.classifier.classify, muon(10.))

    def test_trigger_out_of_range(self):
        record = michel(2., trigger=40)
        with warnings.catch_warnings(record=True) as warned:
            warnings.simplefilter('always')
            self.classifier.classify(record)
        self.assertEqual(len(warned), 1)
        self.assertIn('outside the histogram range', str(warned[0].message))
        self.assertEqual(self.distributions.trigger_bits.overflow, 1)
        self.assertEqual(self.classifier.counters.triggers[40], 1)


if __name__ == '__main__':
    unittest.main()
