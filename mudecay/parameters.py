"""Run-level analysis parameters

All thresholds, windows and detector layout values used by the analysis
are collected here.  The class attributes of :class:`AnalysisParameters`
are the defaults, an instance may override any of them::

    >>> from mudecay.parameters import AnalysisParameters
    >>> params = AnalysisParameters(MICHEL_DT_MIN=1.0)
    >>> params.MICHEL_DT_MIN
    1.0

Or read the overrides from a JSON file::

    >>> params = AnalysisParameters.from_json('run42.json')

Energies are in photoelectrons (p.e.) for the PMTs and in ADC counts for
the SiPM panels, times are in microseconds.

"""
from json import load


class AnalysisParameters(object):

    """Configuration for a muon lifetime analysis run"""

    # Detector layout
    N_PMTS = 12  #: Number of primary (PMT) channels
    N_CHANNELS = 23  #: Number of digitized channels
    PMT_CHANNEL_MAP = tuple(range(12))  #: Raw channel for each PMT
    SIDE_SIPM_CHANNELS = tuple(range(12, 20))
    TOP_SIPM_CHANNELS = (20, 21)
    BEAM_CHANNEL = 22  #: Beam monitor (EV61) channel
    TOP_SIPM_FACTORS = (1.07809, 1.)  #: Cross-calibration of top channels

    # Waveform sampling
    ADCSIZE = 45  #: Number of samples per waveform
    ADC_TIME_PER_SAMPLE = 0.016  #: Sample period in us (16 ns)
    TAIL_START = 15  #: First sample of the SiPM tail integral

    # Pulse finding, in ADC counts
    PULSE_THRESHOLD = 30
    BS_UNCERTAINTY = 5
    PULSE_AT_END_THRESHOLD = 100
    PULSE_AT_END_MIN_CHANNELS = 10
    EV61_THRESHOLD = 1100  #: Beam on if the beam monitor integral is above

    # Event aggregation
    SINGLE_WINDOW = 10  #: Samples around the modal start time
    SINGLE_VARIANCE_TOLERANCE = 80.  #: Max start time variance in ns^2
    MIN_CHANNEL_ENERGY = 1.  #: Channel counts towards multiplicity (p.e.)

    # Selection
    SIPM_THRESHOLDS = (750, 950, 1200, 1375, 525, 700, 700, 500, 450, 450)
    MUON_ENERGY_THRESHOLD = 50.
    MICHEL_ENERGY_MIN = 40.
    MICHEL_ENERGY_MAX = 1000.
    MICHEL_ENERGY_MAX_DT = 400.
    MICHEL_DT_MIN = 0.76
    MICHEL_DT_MAX = 16.
    MICHEL_MIN_MULTIPLICITY = 8
    MICHEL_EXCLUDED_TRIGGERS = (1, 4, 8, 16)
    INITIAL_MUON_TIME = 0.

    # Gain calibration
    CALIBRATION_TRIGGER = 16  #: LED flash trigger code
    MIN_CALIBRATION_ENTRIES = 1000
    CALIBRATION_BINS = 150
    CALIBRATION_RANGE = (-50., 400.)

    # Lifetime fit
    FIT_MIN = 1.
    FIT_MAX = 10.
    TAU_GUESS = 2.2
    TAU_LIMITS = (0.1, 20.)
    BACKGROUND_WINDOW = (12., 16.)
    MIN_FIT_ENTRIES = 6

    def __init__(self, **overrides):
        """Initialize the parameters

        :param overrides: parameter names with the value to use instead
                          of the default.
        :raises TypeError: for names which are not known parameters.

        """
        for name, value in overrides.items():
            if not self.is_parameter(name):
                raise TypeError('Unknown analysis parameter: %s' % name)
            if isinstance(getattr(self, name), tuple):
                value = tuple(value)
            setattr(self, name, value)

    @classmethod
    def from_json(cls, path):
        """Create parameters with overrides read from a JSON file

        :param path: path to a JSON file containing a single object.

        """
        with open(path) as json_file:
            overrides = load(json_file)
        return cls(**overrides)

    @classmethod
    def is_parameter(cls, name):
        return name.isupper() and hasattr(cls, name)

    @property
    def sipm_channels(self):
        return self.SIDE_SIPM_CHANNELS + self.TOP_SIPM_CHANNELS

    def as_dict(self):
        """All parameters and their values"""

        return {name: getattr(self, name) for name in dir(self)
                if self.is_parameter(name)}

    def __repr__(self):
        changed = {name: value for name, value in self.as_dict().items()
                   if value != getattr(type(self), name)}
        return '%s(%s)' % (self.__class__.__name__,
                           ', '.join('%s=%r' % item
                                     for item in sorted(changed.items())))
