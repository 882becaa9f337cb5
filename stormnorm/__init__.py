"""
stormnorm package
=================

Storm event normalization: turns free-text labeled storm records into a
comparable dataset (canonical category + inflation-adjusted damages).

- The CLI entry point is in `stormnorm/cli.py`.
- The per-record pipeline is in `stormnorm/pipeline.py`.
- Grouped statistics are in `stormnorm/aggregate.py`.
- Dataset loading is in `stormnorm/loader.py`.
"""

__version__ = '0.1.0'
