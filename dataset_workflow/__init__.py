"""Dataset publishing workflow client.

Drives the server-side asynchronous operations of a dataset-publishing
service (publish, working copies, permission changes, geocoding checks)
to completion, polling accepted requests at the server-dictated cadence
and keeping enough state to resume after an interruption.
"""

__version__ = "0.1.0"
