"""Tests for the post, comment and project services."""

from __future__ import annotations

from datetime import datetime

from services import CommentService, PostService, clip, next_id


class TestHelpers:
    def test_next_id_empty(self):
        assert next_id([]) == 1

    def test_next_id_uses_max(self):
        assert next_id([{"id": 3}, {"id": 7}]) == 8

    def test_clip(self):
        assert clip("abcdef", 3) == "abc"
        assert clip(None, 3) == ""


class TestPostService:
    def test_create_then_get(self, posts):
        created = posts.create("Hello", "World", "coding")
        fetched = posts.get(created["id"])
        assert fetched == created
        assert fetched["title"] == "Hello"
        assert fetched["body"] == "World"
        assert fetched["status"] == "coding"
        assert fetched["views"] == 0
        datetime.fromisoformat(fetched["date"])

    def test_first_id_is_one(self, posts):
        assert posts.create("a", "b")["id"] == 1

    def test_ids_follow_max_not_count(self, posts, store):
        store.save("posts", [{"id": 3, "title": "x", "body": ""}, {"id": 7, "title": "y", "body": ""}])
        assert posts.create("z", "")["id"] == 8

    def test_ids_not_reused_after_delete(self, posts):
        posts.create("one", "")
        second = posts.create("two", "")
        posts.delete(1)
        assert posts.create("three", "")["id"] == second["id"] + 1

    def test_numbering_resets_when_empty(self, posts):
        first = posts.create("one", "")
        posts.delete(first["id"])
        assert posts.create("again", "")["id"] == 1

    def test_title_truncated(self, posts):
        title = "".join(str(i % 10) for i in range(300))
        created = posts.create(title, "body")
        assert posts.get(created["id"])["title"] == title[:200]

    def test_body_and_status_truncated(self, posts):
        created = posts.create("t", "b" * 10050, "s" * 250)
        assert len(created["body"]) == 10000
        assert len(created["status"]) == 200

    def test_missing_status_defaults_to_empty(self, posts):
        assert posts.create("t", "b", None)["status"] == ""

    def test_get_missing(self, posts):
        assert posts.get(42) is None

    def test_list_in_insertion_order(self, posts):
        posts.create("first", "")
        posts.create("second", "")
        assert [p["title"] for p in posts.list()] == ["first", "second"]

    def test_increment_view_is_monotonic(self, posts):
        post = posts.create("t", "b")
        for _ in range(5):
            posts.increment_view(post["id"])
        assert posts.get(post["id"])["views"] == 5

    def test_increment_view_missing(self, posts):
        assert posts.increment_view(99) is None

    def test_delete_missing_is_not_error(self, posts):
        posts.create("t", "b")
        assert posts.delete(99) is False
        assert len(posts.list()) == 1

    def test_delete_cascades_to_comments(self, posts, comments):
        keep = posts.create("keep", "")
        drop = posts.create("drop", "")
        comments.create(drop["id"], "a", "bye")
        comments.create(keep["id"], "b", "stay")
        comments.create(drop["id"], "c", "bye again")

        assert posts.delete(drop["id"]) is True

        remaining = comments.list()
        assert [c["comment"] for c in remaining] == ["stay"]
        assert remaining[0]["postId"] == keep["id"]

    def test_search_case_insensitive(self, posts):
        posts.create("Alpha Launch", "first")
        posts.create("Beta Notes", "second")
        assert [p["title"] for p in posts.search("launch")] == ["Alpha Launch"]
        assert [p["title"] for p in posts.search("LAUNCH")] == ["Alpha Launch"]

    def test_search_matches_body(self, posts):
        posts.create("Alpha", "rocket telemetry")
        posts.create("Beta", "nothing")
        assert [p["title"] for p in posts.search("Telemetry")] == ["Alpha"]

    def test_blank_search_returns_everything(self, posts):
        posts.create("a", "")
        posts.create("b", "")
        assert len(posts.search("  ")) == 2

    def test_concurrent_creates_lose_an_update(self, store, monkeypatch):
        # Both creates read the collection before either one writes it back.
        comments = CommentService(store)
        first = PostService(store, comments)
        second = PostService(store, comments)
        stale = store.load("posts")

        first.create("lost", "")
        monkeypatch.setattr(store, "load", lambda name: list(stale))
        second.create("last writer", "")
        monkeypatch.undo()

        assert [p["title"] for p in store.load("posts")] == ["last writer"]


class TestCommentService:
    def test_create_then_get(self, comments):
        created = comments.create(1, "Ana", "Nice post")
        assert comments.get(created["id"]) == created
        assert created["postId"] == 1
        assert created["id"] == 1

    def test_comment_ids_are_global(self, comments):
        comments.create(1, "a", "x")
        assert comments.create(2, "b", "y")["id"] == 2

    def test_truncation(self, comments):
        created = comments.create(1, "n" * 80, "c" * 1500)
        assert len(created["name"]) == 50
        assert len(created["comment"]) == 1000

    def test_blank_name_is_anonymous(self, comments):
        assert comments.create(1, "   ", "hi")["name"] == "Anonymous"

    def test_orphan_comment_allowed(self, comments, posts):
        assert posts.get(404) is None
        assert comments.create(404, "x", "hello")["postId"] == 404

    def test_list_for_post(self, comments):
        comments.create(1, "a", "one")
        comments.create(2, "b", "two")
        comments.create(1, "c", "three")
        assert [c["comment"] for c in comments.list_for_post(1)] == ["one", "three"]

    def test_delete_does_not_cascade(self, comments, posts):
        post = posts.create("t", "b")
        comment = comments.create(post["id"], "a", "x")
        assert comments.delete(comment["id"]) is True
        assert posts.get(post["id"]) is not None

    def test_delete_missing(self, comments):
        assert comments.delete(5) is False


class TestProjectService:
    def test_seeded_on_first_load(self, projects):
        assert [p["title"] for p in projects.list()] == ["NaviChat", "Magolor", "Link"]

    def test_create_defaults(self, projects):
        created = projects.create("Thing", "Does stuff")
        assert created["id"] == 4
        assert created["url"] == ""
        assert created["status"] == "active"
        assert created["order"] == 0

    def test_create_normalizes(self, projects):
        created = projects.create("t" * 150, "d" * 600, "u" * 250, "bogus", "not-a-number")
        assert len(created["title"]) == 100
        assert len(created["description"]) == 500
        assert len(created["url"]) == 200
        assert created["status"] == "active"
        assert created["order"] == 0

    def test_update_overwrites_given_fields(self, projects):
        updated = projects.update(2, url="https://magolor.dev", status="active", order="5")
        assert updated["url"] == "https://magolor.dev"
        assert updated["status"] == "active"
        assert updated["order"] == 5
        assert updated["title"] == "Magolor"
        assert projects.get(2) == updated

    def test_update_truncates(self, projects):
        assert len(projects.update(1, title="x" * 300)["title"]) == 100

    def test_update_missing(self, projects):
        assert projects.update(99, title="nope") is None

    def test_delete(self, projects):
        assert projects.delete(1) is True
        assert projects.get(1) is None
        assert projects.delete(1) is False


class TestHandEditedData:
    def test_null_id_is_ignored_for_numbering(self):
        assert next_id([{"id": None}, {"id": 4}]) == 5
        assert next_id([{"id": None}]) == 1

    def test_search_skips_null_fields(self, posts, store):
        store.save(
            "posts",
            [
                {"id": 1, "title": None, "body": "launch day"},
                {"id": 2, "title": "Launch notes", "body": None},
            ],
        )
        assert [p["id"] for p in posts.search("launch")] == [1, 2]
