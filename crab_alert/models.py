"""Message records pushed by MailCrab over the WebSocket."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Contact:
    """A sender or recipient address."""
    email: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.name is None:
            return {"email": self.email}
        return {"name": self.name, "email": self.email}


@dataclass(frozen=True)
class IncomingMessage:
    """Metadata for one captured email.

    ``body`` stays ``None`` until the plain-text body has been fetched; the
    server never sends it in the push payload.
    """
    id: str
    from_: Contact
    to: List[Contact]
    subject: str
    time: int
    date: str
    size: str
    opened: bool
    has_html: bool
    has_plain: bool
    attachments: List[str] = field(default_factory=list)
    body: Optional[str] = None

    @property
    def is_enriched(self) -> bool:
        return self.body is not None

    def with_body(self, body: str) -> "IncomingMessage":
        """Return a copy carrying the fetched plain-text body."""
        return replace(self, body=body)

    def to_dict(self) -> Dict[str, Any]:
        """Encode back into the wire schema (``body`` only once enriched)."""
        data: Dict[str, Any] = {
            "id": self.id,
            "from": self.from_.to_dict(),
            "to": [c.to_dict() for c in self.to],
            "subject": self.subject,
            "time": self.time,
            "date": self.date,
            "size": self.size,
            "opened": self.opened,
            "has_html": self.has_html,
            "has_plain": self.has_plain,
            "attachments": list(self.attachments),
        }
        if self.body is not None:
            data["body"] = self.body
        return data
