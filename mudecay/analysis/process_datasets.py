""" Analyse complete runs

    A run consists of a calibration file and one or more dataset files.
    The gains are determined from the calibration file, after which the
    datasets are processed one by one.  Each dataset is classified with
    its own classifier, counters and histograms, these are added to the
    run totals when the dataset is complete.  Finally the muon lifetime is
    fitted to the combined time difference histogram.

    Example usage::

        import tables

        from mudecay import MuonLifetimeAnalysis

        analysis = MuonLifetimeAnalysis('led_run.h5', ['run1.h5', 'run2.h5'])
        analysis.run()
        with tables.open_file('results.h5', 'w') as data:
            analysis.store_results(data)

"""
import logging

import tables

from .. import datasource, storage
from ..parameters import AnalysisParameters
from ..utils import pbar
from .classification import ClassificationCounters, EventClassifier
from .distributions import Distributions
from .gain_calibration import GainCalibration
from .lifetime import LifetimeFit
from .process_events import EventAggregator

logger = logging.getLogger('mudecay.process_datasets')


class ProcessDataset(object):

    """Process the events of a single dataset

    The events must be given in the order in which they were recorded.

    """

    def __init__(self, gains, parameters=None, progress=True,
                 keep_records=False, name=''):
        """Initialize the class

        :param gains: :class:`~mudecay.analysis.gain_calibration.GainTable`.
        :param parameters: :class:`~mudecay.parameters.AnalysisParameters`.
        :param progress: show a progressbar.
        :param keep_records: keep the event records, for storage.
        :param name: name of the dataset, used as title of the stored
                     records.

        """
        self.name = name
        if parameters is None:
            parameters = AnalysisParameters()
        self.parameters = parameters
        self.progress = progress
        self.keep_records = keep_records
        self.aggregator = EventAggregator(gains, parameters)
        self.distributions = Distributions(parameters.MICHEL_DT_MAX)
        self.classifier = EventClassifier(self.distributions, parameters)
        self.records = []

    def process_events(self, events, length=None):
        """Aggregate and classify all events

        :param events: iterable of recorded events.
        :param length: number of events, for the progressbar.
        :return: :class:`~mudecay.analysis.classification.ClassificationCounters`.

        """
        for event in pbar(events, length=length, show=self.progress):
            record = self.aggregator.process_event(event)
            self.classifier.classify(record)
            if self.keep_records:
                self.records.append(record)
        return self.classifier.finish()

    def store_records(self, data, group, name='processed_events'):
        """Store the kept event records in a PyTables file"""

        table = data.create_table(group, name, storage.ProcessedEvent,
                                  self.name, expectedrows=len(self.records),
                                  createparents=True)
        table.append([record.as_row() for record in self.records])
        table.flush()
        return table


class MuonLifetimeAnalysis(object):

    """Determine the muon lifetime from a complete run"""

    def __init__(self, calibration_path, dataset_paths, parameters=None,
                 progress=True, keep_records=False):
        """Initialize the class

        :param calibration_path: path to the calibration (LED) file.
        :param dataset_paths: paths to the dataset files, in order.
        :param parameters: :class:`~mudecay.parameters.AnalysisParameters`.
        :param progress: show progressbars.
        :param keep_records: keep the event records of each dataset.

        """
        if parameters is None:
            parameters = AnalysisParameters()
        self.calibration_path = calibration_path
        self.dataset_paths = list(dataset_paths)
        self.parameters = parameters
        self.progress = progress
        self.keep_records = keep_records

        self.gains = None
        self.distributions = Distributions(parameters.MICHEL_DT_MAX)
        self.counters = ClassificationCounters()
        self.datasets = []
        self.skipped = []
        self.lifetime = None

    def run(self):
        """Calibrate, process all datasets and fit the lifetime

        :return: :class:`~mudecay.analysis.lifetime.LifetimeFitResult` or
                 None if the lifetime could not be fitted.
        :raises RuntimeError: if the calibration or all dataset files are
                              missing.

        """
        datasource.check_calibration_file(self.calibration_path)
        paths = datasource.existing_datasets(self.dataset_paths)
        self.skipped.extend(path for path in self.dataset_paths
                            if path not in paths)

        self.gains = self.calibrate()
        for path in paths:
            self.process_dataset_file(path)
        if self.skipped:
            logger.info("Skipped files: %s", ", ".join(self.skipped))
        self.log_trigger_distribution()
        self.lifetime = LifetimeFit(self.distributions.dt_michel,
                                    self.parameters).fit()
        return self.lifetime

    def calibrate(self):
        """Determine the gains from the calibration file

        :raises RuntimeError: if the file or its calibration table can not
                              be read.

        """
        logger.info("Calibration file: %s", self.calibration_path)
        try:
            data = tables.open_file(self.calibration_path, 'r')
        except (OSError, tables.HDF5ExtError) as exc:
            raise RuntimeError("Error opening calibration file %s: %s" %
                               (self.calibration_path, exc))
        with data:
            try:
                samples = data.get_node(datasource.CALIBRATION_NODE)
            except tables.NoSuchNodeError:
                raise RuntimeError("Error accessing calibration table in %s" %
                                   self.calibration_path)
            calibration = GainCalibration(self.parameters, self.progress)
            calibration.fill(samples)
        return calibration.determine_gains()

    def process_dataset_file(self, path):
        """Process a dataset file

        Files which can not be read or lack the events table are skipped.

        :return: the :class:`ProcessDataset` or None if skipped.

        """
        data = datasource.open_data_file(path)
        if data is None:
            self.skipped.append(path)
            return None
        with data:
            events = datasource.get_table(data, datasource.EVENTS_NODE)
            if events is None:
                self.skipped.append(path)
                return None
            logger.info("Processing %d entries in %s", events.nrows, path)
            return self.process_dataset(path, events, length=events.nrows)

    def process_dataset(self, name, events, length=None):
        """Process the events of a dataset and add them to the run totals

        :param name: name of the dataset.
        :param events: iterable of recorded events.
        :param length: number of events, for the progressbar.
        :return: the :class:`ProcessDataset`.

        """
        if self.gains is None:
            raise RuntimeError("Gains are not yet determined")
        dataset = ProcessDataset(self.gains, self.parameters, self.progress,
                                 self.keep_records, name)
        counters = dataset.process_events(events, length=length)
        self.distributions.add(dataset.distributions)
        self.counters.add(counters)
        self.datasets.append(dataset)
        logger.info("File %s statistics: %d events, %d muons, %d Michel "
                    "electrons", name, counters.n_events, counters.n_muons,
                    counters.n_michels)
        return dataset

    def log_trigger_distribution(self):
        logger.info("Trigger bits distribution (all files):")
        for trigger, count in sorted(self.counters.triggers.items()):
            logger.info("Trigger %d: %d events", trigger, count)

    def store_results(self, data, group='/'):
        """Store gains, histograms, lifetime fit and event records

        :param data: writeable PyTables file handle.
        :param group: path of the group in which to store the results.

        """
        group = group.rstrip('/')
        if self.gains is not None:
            self.gains.store(data, group or '/')
        self.distributions.store(data, group + '/distributions')
        if self.lifetime is not None:
            self.lifetime.store(data, group or '/')
        if self.keep_records:
            for idx, dataset in enumerate(self.datasets):
                dataset.store_records(data, group + '/datasets',
                                      'dataset_%d' % idx)
