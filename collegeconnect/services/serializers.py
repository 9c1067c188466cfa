"""
collegeconnect.services.serializers — ORM row → API dict
=========================================================

All serializers run while the owning session is still open.  Output keys
are camelCase, matching the public JSON contract of the API.  Derived
values (``voteCount``, ``popularityScore``, ``availableSpots``) are
computed here and never read from storage.
"""

from __future__ import annotations

from datetime import datetime

from collegeconnect.constants import isoformat
from collegeconnect.database.models import (
    Comment,
    Event,
    MemberStatus,
    Notification,
    Post,
    Project,
    Team,
    User,
)
from collegeconnect.engine.roster import available_spots, completion_percentage
from collegeconnect.engine.scoring import VoteTally, popularity_score


def user_summary(u: User | None) -> dict | None:
    if u is None:
        return None
    return {
        "id": u.id,
        "name": u.name,
        "profileImage": u.profile_image,
        "college": u.college,
    }


def serialize_user(u: User, stats: dict | None = None) -> dict:
    data = {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "role": u.role,
        "college": u.college,
        "course": u.course,
        "year": u.year,
        "semester": u.semester,
        "bio": u.bio,
        "skills": list(u.skills or []),
        "interests": list(u.interests or []),
        "socialLinks": dict(u.social_links or {}),
        "profileImage": u.profile_image,
        "isVerified": u.is_verified,
        "isActive": u.is_active,
        "createdAt": isoformat(u.created_at),
        "updatedAt": isoformat(u.updated_at),
    }
    if stats is not None:
        data["stats"] = stats
    return data


# ---------------------------------------------------------------------------
# Posts & comments
# ---------------------------------------------------------------------------
def serialize_comment(
    c: Comment,
    votes: VoteTally | None = None,
    replies: list[dict] | None = None,
) -> dict:
    votes = votes or VoteTally()
    data = {
        "id": c.id,
        "content": c.content,
        "author": user_summary(c.author),
        "post": c.post_id,
        "parentComment": c.parent_comment_id,
        "status": c.status,
        "repliesCount": c.replies_count,
        "isEdited": c.is_edited,
        "lastEditedAt": isoformat(c.last_edited_at),
        "createdAt": isoformat(c.created_at),
        "updatedAt": isoformat(c.updated_at),
        **votes.to_dict(),
    }
    if replies is not None:
        data["replies"] = replies
    return data


def serialize_post(
    p: Post,
    votes: VoteTally | None = None,
    *,
    comments: list[dict] | None = None,
    now: datetime | None = None,
) -> dict:
    votes = votes or VoteTally()
    data = {
        "id": p.id,
        "title": p.title,
        "content": p.content,
        "author": user_summary(p.author),
        "category": p.category,
        "tags": p.tags,
        "status": p.status,
        "visibility": p.visibility,
        "postType": p.post_type,
        "isFeatured": p.is_featured,
        "isSticky": p.is_sticky,
        "views": p.views,
        "commentsCount": p.comments_count,
        "popularityScore": round(
            popularity_score(
                vote_count=votes.vote_count,
                comments_count=p.comments_count,
                views=p.views,
                created_at=p.created_at,
                now=now,
            ),
            4,
        ),
        "createdAt": isoformat(p.created_at),
        "updatedAt": isoformat(p.updated_at),
        **votes.to_dict(),
    }
    if comments is not None:
        data["comments"] = comments
    return data


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
def serialize_event(e: Event, *, include_participants: bool = False) -> dict:
    data = {
        "id": e.id,
        "name": e.name,
        "description": e.description,
        "type": e.type,
        "organizer": {
            "id": e.organizer_id,
            "name": e.organizer_name,
            "type": e.organizer_type,
        },
        "startDate": isoformat(e.start_date),
        "endDate": isoformat(e.end_date),
        "registrationDeadline": isoformat(e.registration_deadline),
        "location": {
            "type": e.location_type,
            "venue": e.venue,
            "city": e.city,
            "onlineLink": e.online_link,
        },
        "status": e.status,
        "registration": {
            "isFree": e.is_free,
            "maxParticipants": e.max_participants,
            "currentParticipants": e.current_participants,
        },
        "tags": list(e.tags or []),
        "views": e.views,
        "createdAt": isoformat(e.created_at),
    }
    if include_participants:
        data["participants"] = [
            {
                "user": p.user_id,
                "registeredAt": isoformat(p.registered_at),
                "status": p.status,
                "teamId": p.team_id,
            }
            for p in e.participants
        ]
    return data


# ---------------------------------------------------------------------------
# Projects & teams
# ---------------------------------------------------------------------------
def serialize_member(m) -> dict:
    return {
        "user": m.user_id,
        "role": m.role,
        "skills": list(m.skills or []),
        "joinedAt": isoformat(m.joined_at),
        "status": m.status,
    }


def serialize_join_request(r) -> dict:
    return {
        "id": r.id,
        "user": r.user_id,
        "message": r.message,
        "skills": list(r.skills or []),
        "experience": r.experience,
        "requestedAt": isoformat(r.requested_at),
        "status": r.status,
        "respondedAt": isoformat(r.responded_at),
        "responseMessage": r.response_message,
    }


def _skill_dict(s) -> dict:
    return {"skill": s.skill, "level": s.level, "isRequired": s.is_required}


def _roster_fields(entity, *, include_requests: bool) -> dict:
    active = sum(1 for m in entity.members if m.status == MemberStatus.ACTIVE.value)
    data = {
        "requiredSkills": [_skill_dict(s) for s in entity.required_skills],
        "members": [serialize_member(m) for m in entity.members],
        "availableSpots": available_spots(entity.team_size_required, active),
        "visibility": entity.visibility,
        "tags": list(entity.tags or []),
        "views": entity.views,
        "createdAt": isoformat(entity.created_at),
        "updatedAt": isoformat(entity.updated_at),
    }
    if include_requests:
        data["joinRequests"] = [serialize_join_request(r) for r in entity.join_requests]
    return data


def serialize_project(p: Project, *, include_requests: bool = False) -> dict:
    return {
        "id": p.id,
        "title": p.title,
        "description": p.description,
        "owner": p.owner_id,
        "status": p.status,
        "type": p.type,
        "domain": p.domain,
        "isOpen": p.is_open,
        "teamSize": {
            "current": p.team_size_current,
            "required": p.team_size_required,
        },
        **_roster_fields(p, include_requests=include_requests),
    }


def serialize_team(t: Team, *, include_requests: bool = False) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "description": t.description,
        "leader": t.leader_id,
        "event": t.event_id,
        "status": t.status,
        "teamSize": {
            "current": t.team_size_current,
            "required": t.team_size_required,
            "max": t.team_size_max,
        },
        "completionPercentage": completion_percentage(
            t.team_size_current, t.team_size_required
        ),
        **_roster_fields(t, include_requests=include_requests),
    }


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
def serialize_notification(n: Notification) -> dict:
    related = n.related
    return {
        "id": n.id,
        "recipient": n.recipient_id,
        "sender": n.sender_id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "relatedEntity": related.to_dict() if related else None,
        "status": n.status,
        "priority": n.priority,
        "readAt": isoformat(n.read_at),
        "expiresAt": isoformat(n.expires_at),
        "createdAt": isoformat(n.created_at),
    }
