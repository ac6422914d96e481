"""Perform data analysis tasks on recorded detector data

This package contains the modules for the muon lifetime analysis.  The
gains are determined from LED calibration data, pulses are found in the
traces and combined into event records which are classified as muon or
Michel electron candidates.  Finally the lifetime is fitted.

Usually users only need to deal with
:mod:`~mudecay.analysis.process_datasets`.

Modules in this package:
------------------------

:mod:`~mudecay.analysis.classification`
    select muons and Michel electrons

:mod:`~mudecay.analysis.distributions`
    histograms of the selected observables

:mod:`~mudecay.analysis.gain_calibration`
    determine the single photoelectron gains

:mod:`~mudecay.analysis.lifetime`
    fit the muon lifetime

:mod:`~mudecay.analysis.process_datasets`
    analyse complete runs

:mod:`~mudecay.analysis.process_events`
    combine the channels of an event

:mod:`~mudecay.analysis.process_traces`
    find pulses in traces

"""
from . import (
    classification,
    distributions,
    gain_calibration,
    lifetime,
    process_datasets,
    process_events,
    process_traces,
)

__all__ = ['classification',
           'distributions',
           'gain_calibration',
           'lifetime',
           'process_datasets',
           'process_events',
           'process_traces']
