"""Collector package for kubemonitor.

Turns Kubernetes watch streams into change records.

Submodules
----------
resources   -- Registry of watchable kinds and their one-line summaries.
client      -- ClusterClient contract and the kubernetes-asyncio adapter.
reconciler  -- EventReconciler: duplicate-ADDED suppression and log append.
supervisor  -- WatchSupervisor: one self-healing watch task per resource type.
"""
