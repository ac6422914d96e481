"""Muon decay analysis

mudecay selects stopping cosmic-ray muons and their Michel electrons in the
digitized PMT and SiPM traces of a scintillator detector, and measures the
muon lifetime from the time differences between them.

The following packages and modules are included:

:mod:`~mudecay.analysis`
    package containing analysis-related modules

:mod:`~mudecay.analyse`
    command line script to analyse a run

:mod:`~mudecay.datasource`
    access to the recorded data files

:mod:`~mudecay.parameters`
    run-level analysis parameters

:mod:`~mudecay.storage`
    storage-related definitions

:mod:`~mudecay.tests`
    code tests

:mod:`~mudecay.utils`
    commonly used functions such as a progressbar

"""
from . import (
    analysis,
    datasource,
    parameters,
    storage,
    utils,
)
from .analysis.classification import EventClassifier
from .analysis.gain_calibration import GainCalibration, GainTable
from .analysis.lifetime import LifetimeFit
from .analysis.process_datasets import MuonLifetimeAnalysis, ProcessDataset
from .analysis.process_events import EventAggregator, EventRecord
from .analysis.process_traces import EventTraces, PulseFinder
from .parameters import AnalysisParameters
from .tests import run_tests

__all__ = [
    'AnalysisParameters',
    'EventAggregator',
    'EventClassifier',
    'EventRecord',
    'EventTraces',
    'GainCalibration',
    'GainTable',
    'LifetimeFit',
    'MuonLifetimeAnalysis',
    'ProcessDataset',
    'PulseFinder',
    'analysis',
    'datasource',
    'parameters',
    'run_tests',
    'storage',
    'utils',
]
