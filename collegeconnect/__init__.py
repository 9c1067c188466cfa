"""
CollegeConnect — Social Networking Backend for College Students
================================================================
REST API for student profiles, discussion posts with voting and
comments, events, projects, and team formation.  The engagement
(voting) and membership (join-request) workflows are the core; the
HTTP layer is a thin boundary over them.

Package layout::

    collegeconnect/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Scoring weights, time helpers
    ├── errors.py          # Typed error taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helper
    │   └── models.py      # All ORM models
    ├── engine/
    │   ├── scoring.py     # Vote tallies + popularity score
    │   └── related.py     # Notification related-entity tagged union
    ├── services/
    │   ├── engagement.py  # Upvote / downvote / remove-vote
    │   ├── membership.py  # Team & project join-request workflow
    │   ├── counters.py    # Derived-field maintenance
    │   ├── listing.py     # Filtered, sorted, paginated reads
    │   └── *_service.py   # Per-entity create / update / delete
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT identity + DI
        └── routes/        # REST endpoints
"""

__version__ = "0.1.0"
