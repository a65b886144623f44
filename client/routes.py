"""
Client-side view table and route protection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Union

from client.session import LOGIN_PATH, Redirect, SessionContext


@dataclass(frozen=True)
class View:
    path: str
    name: str
    protected: bool = True
    pattern: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # "/jobs/:id" -> ^/jobs/(?P<id>[^/]+)$
        regex = re.sub(r":(\w+)", r"(?P<\1>[^/]+)", self.path)
        object.__setattr__(self, "pattern", re.compile(f"^{regex}$"))


@dataclass(frozen=True)
class Match:
    view: View
    params: Dict[str, str]


VIEWS: List[View] = [
    View("/", "dashboard", protected=False),
    View("/login", "login", protected=False),
    View("/signup", "signup", protected=False),
    View("/onboarding", "onboarding"),
    View("/profile", "profile"),
    View("/edit-profile", "edit_profile"),
    View("/dashboard", "dashboard"),
    View("/feed", "feed"),
    View("/create-post", "create_post"),
    View("/jobs", "jobs"),
    View("/jobs/:id", "job_details"),
    View("/post-job", "post_job"),
    View("/connections", "connections"),
    View("/suggestions", "suggestions"),
    View("/users/:id", "user_profile_view"),
    View("/notifications", "notifications"),
    View("/settings", "settings"),
    View("/chat", "chat"),
]


class UnknownView(LookupError):
    pass


class ViewRouter:
    def __init__(self, views: Optional[List[View]] = None) -> None:
        self.views = list(views if views is not None else VIEWS)

    def match(self, path: str) -> Match:
        path = path.split("?", 1)[0].rstrip("/") or "/"
        for view in self.views:
            found = view.pattern.match(path)
            if found:
                return Match(view, found.groupdict())
        raise UnknownView(path)

    def resolve(self, path: str, session: SessionContext) -> Union[Match, Redirect]:
        """
        Decide what to render for ``path``.  Checks only the in-memory
        session; the token itself is not re-verified here.
        """
        matched = self.match(path)
        if matched.view.protected and not session.is_active:
            return Redirect(LOGIN_PATH)
        return matched
