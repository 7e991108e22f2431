"""
Notification contacts

Created and deleted directly by the operator; otherwise immutable.
"""

import logging

from ..domain import Contact, ContactChannel
from ..errors import DocumentNotFound, StoreWriteError, ValidationFailed
from ..store import CONTACTS, SERVER_TIMESTAMP, DocumentStore
from .busy import BusyTracker
from .notices import NoticeBoard


logger = logging.getLogger(__name__)

CONTACT_DELETE_ACTION = "contact_delete"
CONTACT_ADD_ACTION = "contact_add"


class ContactService:

    def __init__(self, store: DocumentStore, busy: BusyTracker, notices: NoticeBoard):
        self.store = store
        self.busy = busy
        self.notices = notices

    async def list_contacts(self, home_id: str) -> list[Contact]:
        snapshot = await self.store.run_query(
            self.store.query(CONTACTS).where("home_id", home_id).order_by("name")
        )
        return [Contact.from_snapshot(doc) for doc in snapshot.docs]

    async def add(self, home_id: str, name: str, channel: ContactChannel, value: str) -> Contact:
        cleaned_name = (name or "").strip()
        cleaned_value = (value or "").strip()
        if not cleaned_name or not cleaned_value:
            raise ValidationFailed("Provide name and phone/email", title="Contact fields required")
        try:
            channel = ContactChannel(channel)
        except ValueError as e:
            raise ValidationFailed(f"Unknown channel: {channel}", title="Invalid channel") from e

        async with self.busy.hold(CONTACT_ADD_ACTION, home_id):
            try:
                contact_id = await self.store.add(CONTACTS, {
                    "home_id": home_id,
                    "name": cleaned_name,
                    "channel": channel.value,
                    "value": cleaned_value,
                    "created_at": SERVER_TIMESTAMP,
                })
            except Exception as e:
                self.notices.error(home_id, "Contact save failed", str(e))
                raise StoreWriteError(str(e), title="Contact save failed", cause=e) from e

        logger.info("[CONTACT] Added %s (%s) for %s", cleaned_name, channel.value, home_id)
        self.notices.success(home_id, "Contact saved", "Notification routing updated")
        snapshot = await self.store.get(CONTACTS, contact_id)
        return Contact.from_snapshot(snapshot)

    async def delete(self, home_id: str, contact_id: str) -> None:
        """Remove a contact belonging to `home_id`.

        Contacts of other homes are reported as not found and left intact.
        """
        async with self.busy.hold(CONTACT_DELETE_ACTION, contact_id):
            snapshot = await self.store.get(CONTACTS, contact_id)
            if not snapshot.exists or snapshot.get("home_id") != home_id:
                raise DocumentNotFound(CONTACTS, contact_id)
            try:
                await self.store.delete(CONTACTS, contact_id)
            except Exception as e:
                self.notices.error(home_id, "Delete failed", str(e))
                raise StoreWriteError(str(e), title="Delete failed", cause=e) from e

        logger.info("[CONTACT] Removed %s from %s", contact_id, home_id)
        self.notices.success(home_id, "Contact removed", "Recipient list updated")
