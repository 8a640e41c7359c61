"""Tasks and webhooks."""

from typing import Any

from missive._errors import ServerError
from missive._object import MissiveObject
from missive.resources._base import Resource, require

TASKS = "/tasks"
HOOKS = "/hooks"

MAX_TITLE_LENGTH = 1000


class Tasks(Resource):
    """
    Task operations.

    A task is either a subtask of a conversation (`subtask=True` with
    `conversation` or `references`) or a standalone task assigned to a
    `team` and/or `assignees`.
    """

    VALID_STATES = ("todo", "done")
    ALLOWED_UPDATE_FIELDS = frozenset({"title", "description", "state", "assignees", "team", "due_at"})

    def _check_state(self, state: Any) -> str:
        state = str(state)
        if state not in self.VALID_STATES:
            raise ValueError(f"state must be one of: {', '.join(self.VALID_STATES)}")
        return state

    @staticmethod
    def _check_title(title: str) -> None:
        if len(title) > MAX_TITLE_LENGTH:
            raise ValueError(f"title cannot exceed {MAX_TITLE_LENGTH} characters")

    @staticmethod
    def _unwrap(response: Any, action: str) -> dict[str, Any]:
        task = response.get("tasks") if isinstance(response, dict) else None
        if not task:
            raise ServerError(f"Task {action} failed", body=response)
        return task

    def create(self, title: str, organization: str | None = None, state: str = "todo", **attrs: Any) -> MissiveObject:
        """
        Create a task.

        Raises:
            ValueError: On a blank/too long title, unknown state, or a task
                that is neither a valid subtask nor a valid standalone task.
            ServerError: If the API answers without the task.
        """
        require(title, "title")
        self._check_title(title)

        task: dict[str, Any] = {"title": title, "state": self._check_state(state)}
        if organization:
            task["organization"] = organization
        task.update(attrs)

        if task.get("subtask"):
            if not (task.get("conversation") or task.get("references")):
                raise ValueError("subtasks require either 'conversation' or 'references'")
        elif not (task.get("team") or task.get("assignees")):
            raise ValueError("standalone tasks require either 'team' or 'assignees'")

        response = self.connection.request("POST", TASKS, body={"tasks": task})
        return self._object(self._unwrap(response, "creation"))

    def update(self, id: str, **attrs: Any) -> MissiveObject:
        """Update a task. Only title, description, state, assignees, team and due_at are sent."""
        require(id, "id")
        if not attrs:
            raise ValueError("no attributes provided for update")

        changes = {key: value for key, value in attrs.items() if key in self.ALLOWED_UPDATE_FIELDS}
        if not changes:
            raise ValueError("no valid attributes provided for update")
        if "state" in changes:
            changes["state"] = self._check_state(changes["state"])
        if changes.get("title"):
            self._check_title(changes["title"])

        response = self.connection.request("PATCH", f"{TASKS}/{id}", body={"tasks": changes})
        return self._object(self._unwrap(response, "update"))


class Hooks(Resource):
    """Webhook subscriptions."""

    VALID_TYPES = (
        "incoming_email",
        "new_comment",
        "new_conversation",
        "conversation_assigned",
        "conversation_closed",
        "conversation_reopened",
        "conversation_moved",
        "conversation_labeled",
        "conversation_unlabeled",
        "message_sent",
        "message_received",
        "task_created",
        "task_updated",
        "task_completed",
    )

    def create(self, type: str, url: str, **filters: Any) -> MissiveObject:
        """
        Subscribe `url` to events of `type`.

        Args:
            type: One of `VALID_TYPES`.
            url: Endpoint receiving the webhook POSTs.
            **filters: Optional filters (`organization`, `mailbox`, `shared_label`, ...).
        """
        require(type, "type")
        if str(type) not in self.VALID_TYPES:
            raise ValueError(f"type must be one of: {', '.join(self.VALID_TYPES)}")
        require(url, "url")

        hook = {"type": str(type), "url": url, **filters}
        response = self.connection.request("POST", HOOKS, body={"hooks": hook})
        created = response.get("hooks") if isinstance(response, dict) else None
        if not created:
            raise ServerError("Hook creation failed", body=response)
        return self._object(created)

    def delete(self, id: str) -> bool:
        require(id, "id")
        self.connection.request("DELETE", f"{HOOKS}/{id}")
        return True
