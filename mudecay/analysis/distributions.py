""" Accumulate observables in histograms

    The analysis pushes observations (energies, time differences, trigger
    codes) into named histograms.  The histograms follow the conventions
    of the ROOT histograms used for this analysis: the number of entries
    counts every fill, including values outside the histogram range which
    end up in the underflow or overflow.

    The :class:`Distributions` bundles all histograms of one analysis.
    Each dataset is accumulated in its own instance, which is added to the
    run totals once the dataset is completely processed.

"""
from numpy import linspace, zeros


class Histogram(object):

    """One dimensional histogram with fixed width bins"""

    def __init__(self, name, n_bins, low, high, title=''):
        """Initialize the histogram

        :param name: name used when storing the histogram.
        :param n_bins: number of bins.
        :param low,high: lower edge of the first and upper edge of the
                         last bin.
        :param title: description of the histogram.

        """
        self.name = name
        self.title = title
        self.n_bins = n_bins
        self.low = float(low)
        self.high = float(high)
        self.counts = zeros(n_bins)
        self.underflow = 0.
        self.overflow = 0.
        self.entries = 0

    @property
    def bin_width(self):
        return (self.high - self.low) / self.n_bins

    @property
    def edges(self):
        return linspace(self.low, self.high, self.n_bins + 1)

    @property
    def bin_centers(self):
        edges = self.edges
        return (edges[:-1] + edges[1:]) / 2

    def find_bin(self, value):
        """Find the index of the bin containing the value

        :return: index into counts, -1 for underflow and n_bins for
                 overflow.

        """
        if value < self.low:
            return -1
        elif value >= self.high:
            return self.n_bins
        return min(int((value - self.low) / self.bin_width), self.n_bins - 1)

    def fill(self, value, weight=1.):
        """Add an entry to the histogram"""

        self.entries += 1
        idx = self.find_bin(value)
        if idx < 0:
            self.underflow += weight
        elif idx >= self.n_bins:
            self.overflow += weight
        else:
            self.counts[idx] += weight

    def integral(self, first=0, last=None):
        """Sum of the bin contents from bin first upto and including last"""

        if last is None:
            last = self.n_bins - 1
        first = max(first, 0)
        return self.counts[first:last + 1].sum()

    def add(self, other):
        """Add the contents of another histogram with the same binning"""

        if (self.n_bins, self.low, self.high) != (other.n_bins, other.low,
                                                  other.high):
            raise ValueError('Can not add histograms with different binning')
        self.counts += other.counts
        self.underflow += other.underflow
        self.overflow += other.overflow
        self.entries += other.entries

    def store(self, data, group):
        """Store the bin contents as an array in a PyTables file

        The binning, under- and overflow and number of entries are stored
        as attributes of the array.

        :param data: writeable PyTables file handle.
        :param group: path of the group (need not exist).

        """
        node = data.create_array(group, self.name, self.counts, self.title,
                                 createparents=True)
        node.attrs.edges = self.edges
        node.attrs.underflow = self.underflow
        node.attrs.overflow = self.overflow
        node.attrs.entries = self.entries
        return node

    def __repr__(self):
        return "%s(%r, %d, %r, %r)" % (self.__class__.__name__, self.name,
                                       self.n_bins, self.low, self.high)


class Histogram2D(object):

    """Two dimensional histogram with fixed width bins"""

    def __init__(self, name, x_bins, x_low, x_high, y_bins, y_low, y_high,
                 title=''):
        self.name = name
        self.title = title
        self.x = Histogram(name + '_x', x_bins, x_low, x_high)
        self.y = Histogram(name + '_y', y_bins, y_low, y_high)
        self.counts = zeros((x_bins, y_bins))
        self.outside = 0.
        self.entries = 0

    def fill(self, x, y, weight=1.):
        self.entries += 1
        idx_x = self.x.find_bin(x)
        idx_y = self.y.find_bin(y)
        if 0 <= idx_x < self.x.n_bins and 0 <= idx_y < self.y.n_bins:
            self.counts[idx_x, idx_y] += weight
        else:
            self.outside += weight

    def add(self, other):
        if self.counts.shape != other.counts.shape:
            raise ValueError('Can not add histograms with different binning')
        self.counts += other.counts
        self.outside += other.outside
        self.entries += other.entries

    def store(self, data, group):
        node = data.create_array(group, self.name, self.counts, self.title,
                                 createparents=True)
        node.attrs.x_edges = self.x.edges
        node.attrs.y_edges = self.y.edges
        node.attrs.outside = self.outside
        node.attrs.entries = self.entries
        return node


class Distributions(object):

    """All histograms filled by the muon and Michel electron selection"""

    names = ['muon_energy', 'michel_energy', 'dt_michel', 'energy_vs_dt',
             'side_sipm_muon', 'top_sipm_muon', 'trigger_bits']

    def __init__(self, michel_dt_max=16.):
        """Create empty histograms

        :param michel_dt_max: upper edge of the time difference histogram,
                              in us.

        """
        self.muon_energy = Histogram(
            'muon_energy', 550, -500, 5000,
            'Muon energy (with Michel electrons) [p.e.]')
        self.michel_energy = Histogram(
            'michel_energy', 100, 0, 800, 'Michel electron energy [p.e.]')
        self.dt_michel = Histogram(
            'dt_michel', 200, 0, michel_dt_max,
            'Muon-Michel time difference [us]')
        self.energy_vs_dt = Histogram2D(
            'energy_vs_dt', 160, 0, 16, 200, 0, 1000,
            'Michel energy [p.e.] vs time difference [us]')
        self.side_sipm_muon = Histogram(
            'side_sipm_muon', 200, 0, 5000, 'Side SiPM energy for muons [ADC]')
        self.top_sipm_muon = Histogram(
            'top_sipm_muon', 200, 0, 1000, 'Top SiPM energy for muons [ADC]')
        self.trigger_bits = Histogram(
            'trigger_bits', 36, 0, 36, 'Trigger bits')

    def __iter__(self):
        return (getattr(self, name) for name in self.names)

    def add(self, other):
        """Add the histograms of another instance to these"""

        for mine, theirs in zip(self, other):
            mine.add(theirs)

    def store(self, data, group='/distributions'):
        for histogram in self:
            histogram.store(data, group)
