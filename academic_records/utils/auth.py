# academic_records/utils/auth.py
from functools import wraps

from flask import current_app, g, request


def records():
    return current_app.extensions["records"]


def bearer_token(req):
    header = req.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return ""
    return header.replace("Bearer ", "", 1).strip()


def token_required(view):
    """Resolve the bearer token to an Actor on g.actor (g.actor_doc holds the record)."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        services = records()
        subject_id = services.tokens.authenticate(bearer_token(request))
        g.actor, g.actor_doc = services.accounts.load_actor(subject_id)
        return view(*args, **kwargs)

    return wrapper
