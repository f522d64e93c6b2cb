"""SwipeFlow REST API client."""

from swipeflow_connector.api.client import (
    CredentialCheck,
    ProjectOption,
    SwipeFlowClient,
    api_path,
)

__all__ = ["CredentialCheck", "ProjectOption", "SwipeFlowClient", "api_path"]
