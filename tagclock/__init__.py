"""
tagClock: a command line time tracker that keeps its data in a synced folder.

- `start` an activity by its tags; it runs until the next one starts or you `stop`
- `summary`, `week` and `tags` show where your time has gone
- Every edit is an immutable patch file, so several devices can share one
  directory through any file synchronization service
"""

__version__ = "0.1.0"
