""" Analyse a muon lifetime run

This script determines the gains from a calibration file, selects muons and
Michel electrons in the dataset files and fits the muon lifetime.

This can be run by simply running the installed script from the command line::

    $ analyse_michel_electrons led_run.h5 run1.h5 run2.h5 --output results.h5

To make the script show information about what it will do add the help flag::

    $ analyse_michel_electrons --help

"""
import argparse
import logging

import tables

from .analysis.process_datasets import MuonLifetimeAnalysis
from .parameters import AnalysisParameters


def main(args=None):
    parser = argparse.ArgumentParser(description='Select muons and Michel '
                                     'electrons and fit the muon lifetime.')
    parser.add_argument('calibration', help='calibration (LED) file')
    parser.add_argument('inputs', nargs='+', help='dataset files')
    parser.add_argument('--output', help='store the results in this file')
    parser.add_argument('--parameters',
                        help='JSON file with analysis parameter overrides')
    parser.add_argument('--keep-events', action='store_true',
                        help='also store the processed events')
    parser.add_argument('--hide-progress', action='store_true',
                        help='do not show progressbars')
    args = parser.parse_args(args)

    logging.basicConfig(level=logging.INFO, format='%(message)s')

    if args.parameters:
        parameters = AnalysisParameters.from_json(args.parameters)
    else:
        parameters = AnalysisParameters()

    analysis = MuonLifetimeAnalysis(args.calibration, args.inputs, parameters,
                                    progress=not args.hide_progress,
                                    keep_records=args.keep_events)
    analysis.run()

    if args.output:
        with tables.open_file(args.output, 'w') as data:
            analysis.store_results(data)
    return analysis


if __name__ == '__main__':
    main()
