"""
Device Share Workflow Module

Shares a telematics device between two fleet databases:
- Backoff polling for cross-database propagation
- Store accessor for Device, DeviceShare and SystemSettings records
- Share / unshare orchestration and target attribute reconciliation
"""

__version__ = "1.0.0"
