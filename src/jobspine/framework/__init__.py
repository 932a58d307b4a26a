"""
job-spine framework - infrastructure around the reconciliation core.

This module provides:
- Source base class and the workbook adapter

Use: from jobspine.framework.sources import WorkbookSource
"""
