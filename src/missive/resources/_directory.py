"""Organization-level collections: organizations, teams, users, responses and shared labels."""

import re
from typing import Any

from missive._object import MissiveObject
from missive.resources._base import OffsetListResource, require


class Organizations(OffsetListResource):
    PATH = "/organizations"
    DATA_KEY = "organizations"


class Teams(OffsetListResource):
    PATH = "/teams"
    DATA_KEY = "teams"


class Users(OffsetListResource):
    PATH = "/users"
    DATA_KEY = "users"


class Responses(OffsetListResource):
    """Canned responses."""

    PATH = "/responses"
    DATA_KEY = "responses"

    def get(self, id: str) -> MissiveObject:
        require(id, "id")
        response = self.connection.request("GET", f"{self.PATH}/{id}")
        if isinstance(response, dict) and isinstance(response.get("responses"), list) and response["responses"]:
            return self._object(response["responses"][0])
        return self._object(response)


class SharedLabels(OffsetListResource):
    """
    Shared labels.

    Colors are hex (`#RGB` or `#RRGGBB`) or one of `good`, `warning`, `danger`.
    """

    PATH = "/shared_labels"
    DATA_KEY = "shared_labels"

    COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
    COLOR_WORDS = ("good", "warning", "danger")

    def _check_labels(self, labels: list[dict[str, Any]]) -> None:
        for label in labels:
            if not label.get("name"):
                raise ValueError("Each label must have a name")
            if not label.get("organization"):
                raise ValueError("Each label must have an organization")
            color = label.get("color")
            if color and not (self.COLOR_PATTERN.match(color) or color in self.COLOR_WORDS):
                raise ValueError(
                    f"Invalid color: {color}. Must be a hex color (#RGB or #RRGGBB) "
                    f"or one of: {', '.join(self.COLOR_WORDS)}"
                )

    def _labels(self, response: Any) -> list[MissiveObject]:
        if isinstance(response, dict):
            labels = response.get(self.DATA_KEY)
            if labels is None:
                labels = [response]
        else:
            labels = response or []
        if isinstance(labels, dict):
            labels = [labels]
        return [self._object(label) for label in labels]

    def create(self, labels: dict[str, Any] | list[dict[str, Any]]) -> list[MissiveObject]:
        labels_list = labels if isinstance(labels, list) else [labels]
        self._check_labels(labels_list)
        response = self.connection.request("POST", self.PATH, body={"shared_labels": labels_list})
        return self._labels(response)

    def update(self, labels: dict[str, Any] | list[dict[str, Any]]) -> list[MissiveObject]:
        """Update several labels at once; each needs its `id`."""
        labels_list = labels if isinstance(labels, list) else [labels]
        self._check_labels(labels_list)
        ids = [str(label["id"]) for label in labels_list if label.get("id")]
        require(ids, "id")
        response = self.connection.request("PATCH", f"{self.PATH}/{','.join(ids)}", body={"shared_labels": labels_list})
        return self._labels(response)
