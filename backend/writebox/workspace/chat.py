"""Assistant chat with a persisted current session."""

from __future__ import annotations

from typing import Any, Iterable

from writebox.core.logging import get_logger
from writebox.gateway.client import GatewayError, GatewayTransportError
from writebox.gateway.service import AIService, FilePayload, to_gateway_turns
from writebox.models.entities import ASSISTANT, USER, Attachment, ChatMessage, ChatSession
from writebox.storage.history import CHAT_SESSIONS, HistoryStore
from writebox.storage.store import CHAT_HISTORY, PersistenceStore, StoreError
from writebox.utils.encoding import to_data_url
from writebox.utils.time import iso_now
from writebox.workspace.status import Status, failure
from writebox.workspace.tasks import Generation

logger = get_logger(__name__)

CURRENT_SESSION = "current"
APOLOGY = "Sorry, something went wrong. Please try again."


class ChatPanel:
    """Ordered transcript of user/assistant turns.

    The whole session is rewritten into the ``current`` slot after every
    change. Replies that arrive after the chat was cleared or restarted are
    dropped.
    """

    def __init__(self, store: PersistenceStore, assistant: AIService, history: HistoryStore) -> None:
        self.store = store
        self.assistant = assistant
        self.history = history
        self.messages: list[ChatMessage] = []
        self.attachments: list[Attachment] = []
        self.sending = False
        self.use_thinking = False
        self.use_search = False
        self.status = Status()
        self._generation = Generation()

    def attach(self, files: Iterable[Attachment]) -> list[str]:
        added = list(files)
        self.attachments.extend(added)
        return [item.name for item in added]

    async def send_message(self, text: str = "") -> ChatMessage | None:
        text = text.strip()
        if not text and not self.attachments:
            return None
        if self.sending:
            self.status = failure("A message is already being sent")
            return None

        self.sending = True
        await self._append(ChatMessage(role=USER, content=text))
        files = [
            FilePayload(data=to_data_url(item.content, item.mime_type), mime_type=item.mime_type)
            for item in self.attachments
        ]
        self.attachments = []
        prior = to_gateway_turns(message.to_dict() for message in self.messages[:-1])
        token = self._generation.token()

        try:
            completion = await self.assistant.chat(
                text,
                history=prior,
                files=files,
                use_thinking=self.use_thinking,
                use_search=self.use_search,
            )
            reply = ChatMessage(role=ASSISTANT, content=completion.text, thinking=completion.thinking or None)
        except GatewayTransportError as exc:
            logger.warning("Chat request failed: %s", exc)
            reply = ChatMessage(role=ASSISTANT, content=APOLOGY)
        except (GatewayError, ValueError) as exc:
            reply = ChatMessage(role=ASSISTANT, content=f"Error: {exc}")
        finally:
            self.sending = False

        if not self._generation.is_current(token):
            logger.debug("Dropping reply for a cleared chat session")
            return None
        await self._append(reply)
        return reply

    async def load_history(self) -> list[ChatMessage]:
        try:
            record = await self.store.get_slot(CHAT_HISTORY, CURRENT_SESSION)
        except StoreError as exc:
            logger.warning("Loading chat session failed: %s", exc)
            self.status = failure("Could not load chat history")
            return self.messages
        if record:
            self.messages = ChatSession.from_record(record).messages
        return self.messages

    async def clear_chat(self, confirmed: bool = True) -> bool:
        if not confirmed:
            return False
        self._generation.bump()
        self.messages = []
        self.attachments = []
        await self._persist()
        return True

    async def new_chat(self) -> None:
        """Archive the current conversation, then start an empty one."""
        if self.messages:
            self.history.push(
                CHAT_SESSIONS,
                {
                    "messages": [message.to_dict() for message in self.messages],
                    "date": iso_now(),
                    "preview": _first_user_text(self.messages),
                },
            )
        await self.clear_chat(confirmed=True)

    def archived_sessions(self) -> list[dict[str, Any]]:
        return self.history.entries(CHAT_SESSIONS)

    def snapshot(self) -> dict[str, Any]:
        return {
            "messages": [message.to_dict() for message in self.messages],
            "attachments": [item.name for item in self.attachments],
            "sending": self.sending,
            "useThinking": self.use_thinking,
            "useSearch": self.use_search,
            "status": self.status.to_dict(),
        }

    async def _append(self, message: ChatMessage) -> None:
        self.messages.append(message)
        await self._persist()

    async def _persist(self) -> None:
        session = ChatSession(messages=list(self.messages), lastModified=iso_now())
        try:
            await self.store.put_slot(CHAT_HISTORY, CURRENT_SESSION, session.to_record())
        except StoreError as exc:
            logger.warning("Saving chat session failed: %s", exc)
            self.status = failure("Could not save chat history")


def _first_user_text(messages: list[ChatMessage]) -> str:
    for message in messages:
        if message.role == USER and message.content:
            return message.content[:100]
    return ""


__all__ = ["ChatPanel", "APOLOGY", "CURRENT_SESSION"]
