"""Inbound and outbound conversation primitives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True, frozen=True)
class Option:
    """A single-use affordance attached to an outbound message."""

    id: str
    label: str
    url: Optional[str] = None


@dataclass(slots=True, frozen=True)
class Turn:
    conversation_id: str
    text: str
    handle: Optional[str] = None


@dataclass(slots=True, frozen=True)
class Selection:
    id: str
    conversation_id: str
    option_id: str
    message_id: Optional[str] = None
