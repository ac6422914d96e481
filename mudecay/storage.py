""" PyTables table descriptions for data storage

    This module contains the table descriptions used for the recorded
    detector data which is read by the analysis, and for the results
    which the analysis can store.

"""
import tables


class CalibrationSample(tables.IsDescription):

    """Store a calibration (LED flash) sample

    .. attribute:: trigger_bits

        trigger code of the sample, LED flashes have code 16.

    .. attribute:: area

        pulse area in ADC counts for each digitized channel.

    """
    trigger_bits = tables.Int32Col(pos=0)
    area = tables.Float64Col(pos=1, shape=23)


class DetectorEvent(tables.IsDescription):

    """Store a recorded detector event

    .. attribute:: event_id

        identifier of the event within the dataset.

    .. attribute:: ns_time

        trigger time of the event in ns.

    .. attribute:: trigger_bits

        trigger code.

    .. attribute:: adc_values

        the waveforms, one row of 45 samples for each of the 23 channels.

    .. attribute:: baseline_mean

        the baseline of each channel in ADC counts.

    """
    event_id = tables.Int32Col(pos=0)
    ns_time = tables.Int64Col(pos=1)
    trigger_bits = tables.Int32Col(pos=2)
    adc_values = tables.Int16Col(pos=3, shape=(23, 45))
    baseline_mean = tables.Float64Col(pos=4, shape=23)


class Gain(tables.IsDescription):

    """Store the single photoelectron gain of a PMT"""

    channel = tables.UInt8Col(pos=0)
    gain = tables.Float64Col(pos=1)
    gain_error = tables.Float64Col(pos=2)


class ProcessedEvent(tables.IsDescription):

    """Store the observables and classification of an event

    Times are in us, PMT energies in p.e. and SiPM energies in ADC counts.

    """
    event_id = tables.Int32Col(pos=0)
    start = tables.Float64Col(pos=1)
    end = tables.Float64Col(pos=2)
    peak = tables.Float64Col(pos=3)
    energy = tables.Float64Col(pos=4)
    number = tables.UInt8Col(pos=5)
    single = tables.BoolCol(pos=6)
    beam = tables.BoolCol(pos=7)
    trigger = tables.Int32Col(pos=8)
    side_sipm_energy = tables.Float64Col(pos=9)
    top_sipm_energy = tables.Float64Col(pos=10)
    all_sipm_energy = tables.Float64Col(pos=11)
    pulse_at_end = tables.BoolCol(pos=12)
    last_muon_time = tables.Float64Col(pos=13)
    is_muon = tables.BoolCol(pos=14)
    is_michel = tables.BoolCol(pos=15)


class LifetimeFit(tables.IsDescription):

    """Store the result of the muon lifetime fit"""

    tau = tables.Float64Col(pos=0)
    tau_error = tables.Float64Col(pos=1)
    n0 = tables.Float64Col(pos=2)
    n0_error = tables.Float64Col(pos=3)
    background = tables.Float64Col(pos=4)
    background_error = tables.Float64Col(pos=5)
    chi2 = tables.Float64Col(pos=6)
    ndf = tables.Int32Col(pos=7)
