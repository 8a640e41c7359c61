"""
Resource classes exposed by `Client`.

Each resource is reached through a client attribute (`client.contacts`,
`client.conversations`, ...) and should not need to be built by hand.
"""

from missive.resources._analytics import Analytics
from missive.resources._base import OffsetListResource, Resource
from missive.resources._contacts import ContactBooks, ContactGroups, Contacts
from missive.resources._conversations import Conversations, Messages
from missive.resources._directory import Organizations, Responses, SharedLabels, Teams, Users
from missive.resources._drafts import Drafts, Posts
from missive.resources._tasks import Hooks, Tasks

__all__ = [
    "Resource",
    "OffsetListResource",
    "Analytics",
    "Contacts",
    "ContactBooks",
    "ContactGroups",
    "Conversations",
    "Messages",
    "Drafts",
    "Posts",
    "Tasks",
    "Hooks",
    "Organizations",
    "Teams",
    "Users",
    "Responses",
    "SharedLabels",
]
