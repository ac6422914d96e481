""" Access recorded detector data

    The recorded data is stored in HDF5 files.  A calibration file contains
    a ``/calibration`` table with :class:`~mudecay.storage.CalibrationSample`
    rows, a dataset file an ``/events`` table with
    :class:`~mudecay.storage.DetectorEvent` rows.

    The analysis only iterates over the rows of these tables, so any
    iterable of mappings with the same fields can be used instead.

    Example usage::

        import tables

        from mudecay.datasource import store_events

        with tables.open_file('run.h5', 'w') as data:
            store_events(data, events)

"""
import os
import warnings

import tables

from . import storage

CALIBRATION_NODE = '/calibration'
EVENTS_NODE = '/events'


def open_data_file(path):
    """Open a data file for reading

    :param path: path to the HDF5 file.
    :return: PyTables file handle, or None if the file can not be opened.

    """
    try:
        return tables.open_file(path, 'r')
    except (OSError, tables.HDF5ExtError) as exc:
        warnings.warn("Could not open file: %s (%s). Skipping..." %
                      (path, exc))
        return None


def get_table(data, node):
    """Get a table from an open data file

    :return: the table, or None if the file does not contain it.

    """
    try:
        return data.get_node(node)
    except tables.NoSuchNodeError:
        warnings.warn("Could not find %s in file: %s" % (node, data.filename))
        return None


def check_calibration_file(path):
    """Make sure the calibration file exists

    :raises RuntimeError: if the file is missing.

    """
    if not os.path.isfile(path):
        raise RuntimeError("Calibration file %s not found" % path)


def existing_datasets(paths):
    """Select the dataset files which exist

    :param paths: paths to dataset files.
    :return: list of the existing paths, in the original order.
    :raises RuntimeError: if none of the files exist.

    """
    existing = []
    for path in paths:
        if os.path.isfile(path):
            existing.append(path)
        else:
            warnings.warn("Could not open file: %s. Skipping..." % path)
    if not existing:
        raise RuntimeError("No input files found")
    return existing


def store_calibration_samples(data, samples, node=CALIBRATION_NODE):
    """Store calibration samples in a PyTables file

    :param data: writeable PyTables file handle.
    :param samples: iterable of (trigger_bits, area) tuples.
    :param node: path of the table to create.

    """
    where, name = os.path.split(node)
    table = data.create_table(where, name, storage.CalibrationSample,
                              createparents=True)
    table.append([tuple(sample) for sample in samples])
    table.flush()
    return table


def store_events(data, events, node=EVENTS_NODE):
    """Store detector events in a PyTables file

    :param data: writeable PyTables file handle.
    :param events: iterable of (event_id, ns_time, trigger_bits,
                   adc_values, baseline_mean) tuples.
    :param node: path of the table to create.

    """
    where, name = os.path.split(node)
    table = data.create_table(where, name, storage.DetectorEvent,
                              createparents=True)
    table.append([tuple(event) for event in events])
    table.flush()
    return table
