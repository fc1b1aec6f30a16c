# -*- coding: utf-8 -*-
"""
General settings at application-level
"""

enable_multithreading: bool = True
"""Turn on or off multithreading (for debugging purpose). When off, the
chunks are processed sequentially in the calling thread, output is identical"""

chunk_size: int = 256
"""Number of target pixels processed by a single task of the thread pool"""

max_workers: int = None
"""Size of the thread pool - None defaults to ``os.cpu_count()``"""

strict_placement: bool = False
"""If True, a tile placement extending beyond the declared full image size
(x_origin + cols > x_total or y_origin + rows > y_total) raises a
ValueError. Otherwise, only a warning is logged and the out-of-image pixels
are computed as any other (usually resulting in no-data values)."""

verbosity: int = 2
"""
Controls the verbosity for the log messages:

    - 0: WARNING & higher severity, output to stderr
    - 1: INFO & higher severity, output to stdout
    - 2 (default):

        - INFO & higher severity, output to stdout
        - DEBUG & higher severity, output to a log file

    - 3 (highest verbosity):

        - INFO & higher severity, output to stdout
        - ALL message (incl. NOTSET), output to a log file

Note: Severities in descending order:
CRITICAL, ERROR, WARNING, INFO, DEBUG, NOTSET """

log_directory: str = None
""" The logging directory for this session - as str"""
