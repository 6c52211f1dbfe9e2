"""CRUD services for posts, comments and projects.

Each service owns one collection in the :class:`store.Store`. Every mutation
loads the whole collection, changes it in memory and saves it back.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from store import Store

logger = logging.getLogger(__name__)

POSTS = "posts"
COMMENTS = "comments"
PROJECTS = "projects"

TITLE_MAX = 200
BODY_MAX = 10000
STATUS_MAX = 200

COMMENT_NAME_MAX = 50
COMMENT_MAX = 1000
ANONYMOUS = "Anonymous"

PROJECT_TITLE_MAX = 100
PROJECT_DESCRIPTION_MAX = 500
PROJECT_URL_MAX = 200
PROJECT_STATUSES = ("active", "coming_soon")

SEED_PROJECTS = [
    {
        "id": 1,
        "title": "NaviChat",
        "description": "A Tor Based E2E Encrypted Messenger Made In GoLang.",
        "url": "http://navi5jbi3apijnyvp5ck6q4n656niqt4jrleiwb2eeaokonfxs22wiid.onion/",
        "status": "active",
        "order": 1,
    },
    {
        "id": 2,
        "title": "Magolor",
        "description": "A Programming Language Designed To Make Games and Low Level Programming Easier.",
        "url": "",
        "status": "coming_soon",
        "order": 2,
    },
    {
        "id": 3,
        "title": "Link",
        "description": "Literally This Site. A retro 2000s-style blog with dynamic posting.",
        "url": "/",
        "status": "active",
        "order": 3,
    },
]


def now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def next_id(items: List[Dict]) -> int:
    ids = [int(item.get("id") or 0) for item in items]
    return max(ids) + 1 if ids else 1


def clip(value: Optional[str], limit: int) -> str:
    """Shorten ``value`` to ``limit`` characters; ``None`` becomes ``""``."""
    return str(value or "")[:limit]


def find_by_id(items: List[Dict], item_id: int) -> Optional[Dict]:
    for item in items:
        if item.get("id") == item_id:
            return item
    return None


class CommentService:
    def __init__(self, store: Store):
        self.store = store

    def list(self) -> List[Dict]:
        return self.store.load(COMMENTS)

    def list_for_post(self, post_id: int) -> List[Dict]:
        return [c for c in self.list() if c.get("postId") == post_id]

    def get(self, comment_id: int) -> Optional[Dict]:
        return find_by_id(self.list(), comment_id)

    def create(self, post_id: int, name: Optional[str], comment: Optional[str]) -> Dict:
        # postId is not checked against the posts collection.
        comments = self.list()
        new_comment = {
            "id": next_id(comments),
            "postId": int(post_id),
            "name": clip(name, COMMENT_NAME_MAX).strip() or ANONYMOUS,
            "comment": clip(comment, COMMENT_MAX),
            "date": now_iso(),
        }
        comments.append(new_comment)
        self.store.save(COMMENTS, comments)
        logger.info(
            "comment created",
            extra={"comment_id": new_comment["id"], "post_id": new_comment["postId"]},
        )
        return new_comment

    def delete(self, comment_id: int) -> bool:
        comments = self.list()
        remaining = [c for c in comments if c.get("id") != comment_id]
        if len(remaining) == len(comments):
            return False
        self.store.save(COMMENTS, remaining)
        logger.info("comment deleted", extra={"comment_id": comment_id})
        return True

    def delete_for_post(self, post_id: int) -> int:
        comments = self.list()
        remaining = [c for c in comments if c.get("postId") != post_id]
        removed = len(comments) - len(remaining)
        if removed:
            self.store.save(COMMENTS, remaining)
        return removed


class PostService:
    def __init__(self, store: Store, comments: CommentService):
        self.store = store
        self.comments = comments

    def list(self) -> List[Dict]:
        return self.store.load(POSTS)

    def get(self, post_id: int) -> Optional[Dict]:
        return find_by_id(self.list(), post_id)

    def create(self, title: Optional[str], body: Optional[str], status: Optional[str] = "") -> Dict:
        posts = self.list()
        new_post = {
            "id": next_id(posts),
            "title": clip(title, TITLE_MAX),
            "body": clip(body, BODY_MAX),
            "date": now_iso(),
            "status": clip(status, STATUS_MAX),
            "views": 0,
        }
        posts.append(new_post)
        self.store.save(POSTS, posts)
        logger.info("post created", extra={"post_id": new_post["id"]})
        return new_post

    def delete(self, post_id: int) -> bool:
        """Remove a post together with every comment left on it."""
        posts = self.list()
        remaining = [p for p in posts if p.get("id") != post_id]
        if len(remaining) == len(posts):
            return False
        self.store.save(POSTS, remaining)
        removed = self.comments.delete_for_post(post_id)
        logger.info("post deleted", extra={"post_id": post_id, "comments_removed": removed})
        return True

    def increment_view(self, post_id: int) -> Optional[Dict]:
        posts = self.list()
        post = find_by_id(posts, post_id)
        if post is None:
            return None
        post["views"] = int(post.get("views", 0)) + 1
        self.store.save(POSTS, posts)
        return post

    def search(self, query: Optional[str]) -> List[Dict]:
        posts = self.list()
        needle = (query or "").strip().lower()
        if not needle:
            return posts
        return [
            p
            for p in posts
            if needle in (p.get("title") or "").lower() or needle in (p.get("body") or "").lower()
        ]


def normalize_status(value: Optional[str]) -> str:
    return value if value in PROJECT_STATUSES else "active"


def normalize_order(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class ProjectService:
    def __init__(self, store: Store):
        self.store = store

    def list(self) -> List[Dict]:
        return self.store.load(PROJECTS)

    def get(self, project_id: int) -> Optional[Dict]:
        return find_by_id(self.list(), project_id)

    def create(
        self,
        title: Optional[str],
        description: Optional[str],
        url: Optional[str] = "",
        status: Optional[str] = "active",
        order=0,
    ) -> Dict:
        projects = self.list()
        new_project = {
            "id": next_id(projects),
            "title": clip(title, PROJECT_TITLE_MAX),
            "description": clip(description, PROJECT_DESCRIPTION_MAX),
            "url": clip(url, PROJECT_URL_MAX),
            "status": normalize_status(status),
            "order": normalize_order(order),
        }
        projects.append(new_project)
        self.store.save(PROJECTS, projects)
        logger.info("project created", extra={"project_id": new_project["id"]})
        return new_project

    def update(self, project_id: int, **fields) -> Optional[Dict]:
        projects = self.list()
        project = find_by_id(projects, project_id)
        if project is None:
            return None
        if fields.get("title") is not None:
            project["title"] = clip(fields["title"], PROJECT_TITLE_MAX)
        if fields.get("description") is not None:
            project["description"] = clip(fields["description"], PROJECT_DESCRIPTION_MAX)
        if fields.get("url") is not None:
            project["url"] = clip(fields["url"], PROJECT_URL_MAX)
        if fields.get("status") is not None:
            project["status"] = normalize_status(fields["status"])
        if fields.get("order") is not None:
            project["order"] = normalize_order(fields["order"])
        self.store.save(PROJECTS, projects)
        logger.info("project updated", extra={"project_id": project_id})
        return project

    def delete(self, project_id: int) -> bool:
        projects = self.list()
        remaining = [p for p in projects if p.get("id") != project_id]
        if len(remaining) == len(projects):
            return False
        self.store.save(PROJECTS, remaining)
        logger.info("project deleted", extra={"project_id": project_id})
        return True
