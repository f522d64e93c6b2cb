"""Workflow actions on SwipeFlow items and projects."""

from swipeflow_connector.actions.executor import ACTIONS, execute, run_action, to_records

__all__ = ["ACTIONS", "execute", "run_action", "to_records"]
