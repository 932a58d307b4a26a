"""
job-spine - reconcile an externally maintained job worksheet into the job store.

Packages:
- jobspine.core: errors, logging, settings, protocols, ORM and repositories
- jobspine.framework: workbook source adapter
- jobspine.sync: header/row handling, manager resolution, conflict policy,
  the reconciliation engine and its audit summary
- jobspine.cli: the ``jobspine`` command
"""

__version__ = "0.1.0"
