"""Snapshot reducer for the session page."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from ttrpg_client.sessions.models import Participant, Session


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
	session_id: int
	session: Optional[Session] = None
	participants: tuple[Participant, ...] = ()


@dataclass(frozen=True, slots=True)
class SessionLoaded:
	session: Session


@dataclass(frozen=True, slots=True)
class SessionUpdated:
	session: Session


@dataclass(frozen=True, slots=True)
class SessionDeleted:
	session_id: int


@dataclass(frozen=True, slots=True)
class ParticipantsLoaded:
	participants: tuple[Participant, ...]


@dataclass(frozen=True, slots=True)
class ParticipantJoined:
	participant: Participant


@dataclass(frozen=True, slots=True)
class ParticipantLeft:
	user_id: int


@dataclass(frozen=True, slots=True)
class ParticipantRemoved:
	participant_id: int


@dataclass(frozen=True, slots=True)
class ParticipantStatusChanged:
	participant: Participant


SessionEvent = Union[
	SessionLoaded,
	SessionUpdated,
	SessionDeleted,
	ParticipantsLoaded,
	ParticipantJoined,
	ParticipantLeft,
	ParticipantRemoved,
	ParticipantStatusChanged,
]


def _merge_participant(participants: tuple[Participant, ...], participant: Participant) -> tuple[Participant, ...]:
	# userId is unique per session; replace in place to keep roster order stable.
	merged = []
	placed = False
	for existing in participants:
		if existing.id == participant.id or existing.user_id == participant.user_id:
			if not placed:
				merged.append(participant)
				placed = True
			continue
		merged.append(existing)
	if not placed:
		merged.append(participant)
	return tuple(merged)


def _with_participants(snapshot: SessionSnapshot, participants: tuple[Participant, ...]) -> SessionSnapshot:
	session = snapshot.session
	if session is not None:
		session = session.model_copy(update={"participants": list(participants)})
	return replace(snapshot, session=session, participants=participants)


def reduce_session(snapshot: SessionSnapshot | None, event: SessionEvent, *, session_id: int) -> SessionSnapshot:
	base = snapshot or SessionSnapshot(session_id=session_id)

	if isinstance(event, SessionLoaded):
		return replace(base, session=event.session, participants=tuple(event.session.participants))

	if isinstance(event, SessionUpdated):
		incoming = event.session
		if base.session is not None:
			# Update replies carry no roster or parent campaign.
			update = {}
			if not incoming.participants:
				update["participants"] = list(base.participants)
			if incoming.campaign is None:
				update["campaign"] = base.session.campaign
			if update:
				incoming = incoming.model_copy(update=update)
		return replace(base, session=incoming, participants=tuple(incoming.participants))

	if isinstance(event, SessionDeleted):
		return SessionSnapshot(session_id=event.session_id)

	if isinstance(event, ParticipantsLoaded):
		return _with_participants(base, tuple(event.participants))

	if isinstance(event, (ParticipantJoined, ParticipantStatusChanged)):
		return _with_participants(base, _merge_participant(base.participants, event.participant))

	if isinstance(event, ParticipantLeft):
		return _with_participants(base, tuple(p for p in base.participants if p.user_id != event.user_id))

	if isinstance(event, ParticipantRemoved):
		return _with_participants(base, tuple(p for p in base.participants if p.id != event.participant_id))

	raise TypeError(f"unsupported session event: {type(event).__name__}")
