# Conflict detection across calendars.
# Created: 2026-10-14
#
# Two stages: find_conflicting_events() returns the flat, deduplicated list
# of events taking part in at least one overlap (the engine's contract);
# group_conflicts() unions that list into connected components for display.
# Both are O(n^2) in the number of events, bounded by the 250-per-calendar
# page cap.

from __future__ import annotations

from datetime import datetime

from invitedesk.calendar.models import (
    ConflictGroup,
    DateRange,
    PendingInvite,
    RemoteEvent,
    parse_instant,
)
from invitedesk.calendar.normalize import event_to_conflict_entry


def _interval(event: RemoteEvent) -> tuple[datetime, datetime] | None:
    start = event.start.instant()
    end = event.end.instant()
    if start is None or end is None:
        return None
    return start, end


def intervals_overlap(
    start1: datetime, end1: datetime, start2: datetime, end2: datetime
) -> bool:
    """Half-open interval overlap; touching endpoints do not overlap."""
    return start1 < end2 and start2 < end1


def events_overlap(event1: RemoteEvent, event2: RemoteEvent) -> bool:
    """True if both events have precise times and those times overlap.

    All-day events carry no time of day and never overlap anything here.
    """
    first = _interval(event1)
    second = _interval(event2)
    if first is None or second is None:
        return False
    return intervals_overlap(*first, *second)


def find_conflicting_events(
    events: list[RemoteEvent], user_email: str
) -> list[PendingInvite]:
    """Every event overlapping at least one other, deduplicated, by start time."""
    seen_pairs: set[tuple[str, str]] = set()
    conflicts: dict[str, PendingInvite] = {}
    starts: dict[str, datetime] = {}

    for i, event1 in enumerate(events):
        for event2 in events[i + 1 :]:
            # the same event can be listed on several calendars
            if not event1.id or not event2.id or event1.id == event2.id:
                continue
            pair = tuple(sorted((event1.id, event2.id)))
            if pair in seen_pairs:
                continue
            if not events_overlap(event1, event2):
                continue
            seen_pairs.add(pair)
            for event in (event1, event2):
                if event.id in conflicts:
                    continue
                entry = event_to_conflict_entry(event, user_email)
                if entry is not None:
                    conflicts[event.id] = entry
                    starts[event.id] = event.start.instant()

    return sorted(conflicts.values(), key=lambda c: starts[c.event_id])


def _invite_interval(invite: PendingInvite) -> tuple[datetime, datetime] | None:
    try:
        return parse_instant(invite.start_time), parse_instant(invite.end_time)
    except ValueError:
        return None


def group_conflicts(invites: list[PendingInvite]) -> list[ConflictGroup]:
    """Union overlapping invites into maximal groups (connected components).

    A overlapping B and B overlapping C puts all three in one group, even if
    A and C do not touch. Groups are ordered by their earliest start.
    """
    intervals = [_invite_interval(invite) for invite in invites]
    parent = list(range(len(invites)))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    for i in range(len(invites)):
        for j in range(i + 1, len(invites)):
            a, b = intervals[i], intervals[j]
            if a is None or b is None:
                continue
            if intervals_overlap(*a, *b):
                parent[find(j)] = find(i)

    members: dict[int, list[int]] = {}
    for i in range(len(invites)):
        if intervals[i] is None:
            continue
        members.setdefault(find(i), []).append(i)

    groups = []
    for indexes in members.values():
        indexes.sort(key=lambda k: intervals[k][0])
        start_i = min(indexes, key=lambda k: intervals[k][0])
        end_i = max(indexes, key=lambda k: intervals[k][1])
        groups.append(
            (
                intervals[start_i][0],
                ConflictGroup(
                    events=[invites[k] for k in indexes],
                    time_range=DateRange(
                        start=invites[start_i].start_time,
                        end=invites[end_i].end_time,
                    ),
                ),
            )
        )
    groups.sort(key=lambda g: g[0])
    return [group for _, group in groups]
