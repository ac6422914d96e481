import unittest

from numpy import zeros

from mudecay.analysis import process_traces
from mudecay.analysis.gain_calibration import GainTable
from mudecay.parameters import AnalysisParameters


def make_trace(samples, length=45):
    """Trace of zeros with the given {index: value} samples"""

    trace = [0] * length
    for idx, value in samples.items():
        trace[idx] = value
    return trace


class PulseFinderTests(unittest.TestCase):

    def setUp(self):
        self.finder = process_traces.PulseFinder()

    def test_defaults(self):
        self.assertEqual(self.finder.threshold, 30)
        self.assertEqual(self.finder.uncertainty, 5)
        self.assertEqual(self.finder.time_per_sample, 0.016)

    def test_no_pulse_below_threshold(self):
        self.assertEqual(self.finder.find_pulses([29] * 45), [])
        self.assertEqual(self.finder.find_pulses([0] * 45), [])

    def test_single_pulse(self):
        trace = make_trace({9: 3, 10: 25, 11: 40, 12: 200, 13: 100, 14: 50,
                            15: 2})
        pulses = self.finder.find_pulses(trace)
        self.assertEqual(len(pulses), 1)
        pulse = pulses[0]
        # Rising edge above 10% of the peak moves the start
        self.assertAlmostEqual(pulse.start, 10 * 0.016)
        self.assertAlmostEqual(pulse.end, 15 * 0.016)
        self.assertEqual(pulse.peak, 200)
        self.assertEqual(pulse.energy, sum(trace[10:16]))

    def test_start_never_after_threshold_crossing(self):
        trace = make_trace({11: 40, 12: 200, 13: 2})
        pulse = self.finder.find_pulses(trace)[0]
        self.assertAlmostEqual(pulse.start, 11 * 0.016)
        self.assertEqual(pulse.energy, 242)

    def assertEnergyFromStartToEnd(self, trace, pulse):
        start = int(round(pulse.start / 0.016))
        end = int(round(pulse.end / 0.016))
        self.assertEqual(pulse.energy, sum(trace[start:end + 1]))

    def test_rising_edge_at_ten_percent(self):
        """A sample of exactly 10% of the peak is not part of the pulse"""

        trace = make_trace({10: 20, 11: 40, 12: 200, 13: 2})
        pulse = self.finder.find_pulses(trace)[0]
        self.assertAlmostEqual(pulse.start, 11 * 0.016)
        self.assertEqual(pulse.energy, 242)
        self.assertEnergyFromStartToEnd(trace, pulse)

        trace[10] = 21
        pulse = self.finder.find_pulses(trace)[0]
        self.assertAlmostEqual(pulse.start, 10 * 0.016)
        self.assertEqual(pulse.energy, 263)
        self.assertEnergyFromStartToEnd(trace, pulse)

    def test_small_rising_edge_before_start(self):
        trace = make_trace({9: 8, 10: 25, 11: 40, 12: 200, 13: 2})
        pulse = self.finder.find_pulses(trace)[0]
        self.assertAlmostEqual(pulse.start, 10 * 0.016)
        self.assertEqual(pulse.energy, 25 + 40 + 200 + 2)
        self.assertEnergyFromStartToEnd(trace, pulse)

    def test_small_sample_within_rising_edge(self):
        trace = make_trace({8: 30, 9: 10, 10: 25, 11: 40, 12: 200, 13: 2})
        pulse = self.finder.find_pulses(trace)[0]
        self.assertAlmostEqual(pulse.start, 8 * 0.016)
        self.assertEqual(pulse.energy, 307)
        self.assertEnergyFromStartToEnd(trace, pulse)

    def test_walk_back_stops_at_baseline(self):
        trace = make_trace({8: 100, 9: 5, 10: 25, 11: 40, 12: 200, 13: 2})
        self.assertEqual(self.finder.walk_back(trace, 11, 12, 200), 10)

    def test_multiple_pulses(self):
        trace = make_trace({5: 50, 6: 100, 7: 0, 20: 40, 21: 80, 22: 60,
                            23: 1})
        pulses = self.finder.find_pulses(trace)
        self.assertEqual(pulses, [
            process_traces.PulseCandidate(5 * 0.016, 7 * 0.016, 100., 150.),
            process_traces.PulseCandidate(20 * 0.016, 23 * 0.016, 80., 181.)])

    def test_pulse_until_end_of_trace(self):
        trace = make_trace({42: 40, 43: 100, 44: 90})
        pulses = self.finder.find_pulses(trace)
        self.assertEqual(len(pulses), 1)
        self.assertAlmostEqual(pulses[0].end, 44 * 0.016)
        self.assertEqual(pulses[0].energy, 230)

    def test_pulse_on_last_sample(self):
        trace = make_trace({44: 60})
        pulses = self.finder.find_pulses(trace)
        self.assertEqual(len(pulses), 1)
        self.assertAlmostEqual(pulses[0].start, 44 * 0.016)
        self.assertAlmostEqual(pulses[0].end, 44 * 0.016)
        self.assertEqual(pulses[0].energy, 60)

    def test_custom_threshold(self):
        finder = process_traces.PulseFinder(threshold=100)
        trace = make_trace({10: 50, 20: 150, 21: 0})
        pulses = finder.find_pulses(trace)
        self.assertEqual(len(pulses), 1)
        self.assertAlmostEqual(pulses[0].start, 20 * 0.016)

    def test_tail_integral(self):
        trace = list(range(45))
        self.assertEqual(process_traces.tail_integral(trace), sum(range(15, 45)))
        self.assertEqual(process_traces.tail_integral(trace, 0), sum(range(45)))


class EventTracesTests(unittest.TestCase):

    def setUp(self):
        self.baselines = [100.] * 23
        self.adc_values = zeros((23, 45)) + 100
        self.gains = GainTable.uncalibrated()

    def traces(self, parameters=None):
        return process_traces.EventTraces(self.adc_values, self.baselines,
                                          self.gains, parameters)

    def test_traces(self):
        self.adc_values[3, 7] = 150
        traces = self.traces().traces
        self.assertEqual(traces.shape, (45, 23))
        self.assertEqual(traces[7, 3], 50)
        self.assertEqual(traces[8, 3], 0)

    def test_mismatched_baselines(self):
        self.assertRaises(ValueError, process_traces.EventTraces,
                          self.adc_values, [100.] * 22, self.gains)

    def test_pulses(self):
        self.adc_values[0, 10:12] = [140, 180]
        self.adc_values[11, 20] = 160
        pulses = self.traces().pulses
        self.assertEqual(len(pulses), 12)
        self.assertEqual(pulses[0], [process_traces.PulseCandidate(
            10 * 0.016, 12 * 0.016, 80., 120.)])
        self.assertEqual(pulses[11][0].energy, 60.)
        self.assertEqual(pulses[5], [])

    def test_pulses_use_gains(self):
        self.adc_values[1, 10] = 180
        self.gains = GainTable([1.] + [4.] + [1.] * 10)
        pulse = self.traces().pulses[1][0]
        self.assertEqual(pulse.peak, 20.)
        self.assertEqual(pulse.energy, 20.)

    def test_uncalibrated_pulses_keep_adc_counts(self):
        self.adc_values[1, 10] = 180
        self.gains = GainTable([4.] + [0.] * 11)
        pulse = self.traces().pulses[1][0]
        self.assertEqual(pulse.peak, 80.)
        self.assertEqual(pulse.energy, 80.)

    def test_sipm_energies(self):
        self.adc_values[12, 15:] = 110
        self.adc_values[12, :15] = 200
        self.adc_values[20, 15:] = 101
        self.adc_values[21, 15:] = 102
        energies = self.traces().sipm_energies
        self.assertEqual(len(energies), 10)
        self.assertEqual(energies[0], 300.)
        self.assertEqual(energies[1:8], [0.] * 7)
        self.assertAlmostEqual(energies[8], 30 * 1.07809)
        self.assertEqual(energies[9], 60.)

    def test_beam_integral(self):
        self.adc_values[22] = 130
        self.assertEqual(self.traces().beam_integral, 45 * 30.)

    def test_pulse_at_end(self):
        self.adc_values[:10, -1] = 201
        self.assertTrue(self.traces().pulse_at_end)

    def test_no_pulse_at_end(self):
        self.adc_values[:9, -1] = 201
        self.adc_values[9, -1] = 200
        self.assertFalse(self.traces().pulse_at_end)

    def test_channel_map(self):
        parameters = AnalysisParameters(PMT_CHANNEL_MAP=[1, 0] +
                                        list(range(2, 12)))
        self.adc_values[1, 10] = 180
        pulses = self.traces(parameters).pulses
        self.assertEqual(len(pulses[0]), 1)
        self.assertEqual(pulses[1], [])


if __name__ == '__main__':
    unittest.main()
