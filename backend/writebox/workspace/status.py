"""Transient user-visible status lines."""

from __future__ import annotations

from dataclasses import dataclass, field

from writebox.utils.time import iso_now


@dataclass(slots=True)
class Status:
    message: str = ""
    ok: bool = True
    at: str = field(default_factory=iso_now)

    def to_dict(self) -> dict[str, object]:
        return {"message": self.message, "ok": self.ok, "at": self.at}


def success(message: str) -> Status:
    return Status(message=message, ok=True)


def failure(message: str) -> Status:
    return Status(message=message, ok=False)


__all__ = ["Status", "success", "failure"]
