"""Parameter models for workflow actions, one per resource/operation."""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

ContentType = Literal["text", "html", "image", "video", "audio"]
Decision = Literal["approved", "rejected", "revised"]
HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def _json_object(value: Any) -> Any:
    """Accept a mapping, a JSON-encoded string or an empty value."""
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            msg = f"not valid JSON: {exc.msg}"
            raise ValueError(msg) from exc
    return value


JsonObject = Annotated[dict[str, Any], BeforeValidator(_json_object)]
JsonValue = Annotated[Any, BeforeValidator(_json_object)]


class _Params(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ProjectRef(_Params):
    project_id: str = Field(alias="projectId", min_length=1)


class ItemRef(_Params):
    item_id: str = Field(alias="itemId", min_length=1)


class ItemCreateParams(ProjectRef):
    title: str = Field(min_length=1)
    description: str = ""
    content_type: ContentType = Field(default="text", alias="contentType")
    content: str = Field(min_length=1)
    metadata: JsonObject = Field(default_factory=dict)
    expires_at: str = Field(default="", alias="expiresAt")

    def to_body(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "content": {"type": self.content_type, "data": self.content},
            "metadata": self.metadata,
            "expiresAt": self.expires_at,
        }


class ItemReviewParams(ProjectRef):
    item_id: str = Field(alias="itemId", min_length=1)
    decision: Decision = "approved"
    comment: str = ""


class ProjectWriteParams(_Params):
    name: str = Field(min_length=1)
    description: str = ""


class ProjectUpdateParams(ProjectWriteParams):
    project_id: str = Field(alias="projectId", min_length=1)


class ApiRequestParams(_Params):
    """Arbitrary call: *endpoint* is the path after ``/v1/``."""

    method: HttpMethod = "GET"
    endpoint: str = ""
    body: JsonObject = Field(default_factory=dict)
    query: JsonValue = Field(default_factory=dict)

    @field_validator("method", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def request_body(self) -> dict[str, Any]:
        return self.body if self.method in _BODY_METHODS else {}

    @property
    def request_query(self) -> dict[str, Any] | None:
        # only plain objects are usable as a query string
        return self.query if isinstance(self.query, dict) else None
