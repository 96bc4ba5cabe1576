"""kubemonitor: Kubernetes resource change monitor.

Watches a configurable set of resource kinds, records every add/modify/delete
transition as a de-duplicated change record, and persists the change log to a
JSON snapshot.
"""

__version__ = "0.3.0"
