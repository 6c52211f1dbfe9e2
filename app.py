from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime
from functools import wraps
from typing import Dict, Optional

from flask import (
    Blueprint,
    Flask,
    abort,
    current_app,
    redirect,
    render_template,
    request,
    url_for,
)
from markdown import Markdown
from markdown.extensions import Extension
from markupsafe import Markup
from slugify import slugify

import config
from logs import configure_logging
from services import (
    COMMENTS,
    POSTS,
    PROJECTS,
    SEED_PROJECTS,
    CommentService,
    PostService,
    ProjectService,
)
from sessions import SessionRegistry
from store import Store

logger = logging.getLogger(__name__)

bp = Blueprint("blog", __name__)

EXCERPT_LENGTH = 300
DASHBOARD_EXCERPT_LENGTH = 150

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": (
        "default-src 'none'; style-src 'self'; img-src 'self' data:; form-action 'self'"
    ),
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}


class EscapeRawHtml(Extension):
    """Treat raw HTML in post bodies as text."""

    def extendMarkdown(self, md):
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")


def render_markdown(md_text: str) -> Markup:
    md = Markdown(
        extensions=[EscapeRawHtml(), "nl2br", "sane_lists"],
        output_format="html",
    )
    return Markup(md.convert(md_text or ""))


def parse_date(date_str: Optional[str]) -> datetime:
    if not date_str:
        return datetime.min
    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        return datetime.min


def format_date(date_str: Optional[str]) -> str:
    dt = parse_date(date_str)
    if dt == datetime.min:
        return ""
    return dt.strftime("%B %d, %Y %H:%M")


def build_excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    text = text or ""
    if len(text) <= length:
        return text
    return f"{text[:length]}..."


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def check_password(password: str) -> bool:
    return hmac.compare_digest(
        hash_password(password), current_app.config["ADMIN_PASSWORD_HASH"]
    )


def get_sessions() -> SessionRegistry:
    return current_app.extensions["sessions"]


def get_services() -> Dict:
    return current_app.extensions["content"]


def session_token() -> Optional[str]:
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])


def is_authenticated() -> bool:
    return get_sessions().validate(session_token())


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not is_authenticated():
            return redirect(url_for("blog.admin_login"))
        return view(*args, **kwargs)

    return wrapped


def newest_first(posts):
    return list(reversed(posts))


@bp.app_context_processor
def inject_globals():
    return {
        "site_title": current_app.config["SITE_TITLE"],
        "site_description": current_app.config["SITE_DESCRIPTION"],
        "format_date": format_date,
        "build_excerpt": build_excerpt,
        "is_authenticated": is_authenticated,
    }


@bp.app_template_filter("markdown")
def markdown_filter(text: str) -> Markup:
    return render_markdown(text)


@bp.app_template_filter("slug")
def slug_filter(text: str) -> str:
    return slugify(text or "")


@bp.after_app_request
def add_security_headers(response):
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


@bp.app_errorhandler(404)
def not_found(_error):
    return render_template("404.html"), 404


@bp.route("/")
def blog_index():
    posts = get_services()["posts"].list()
    count = current_app.config["HOME_POST_COUNT"]
    recent = newest_first(posts[-count:])
    return render_template("index.html", posts=recent, post_count=len(posts))


@bp.route("/archive")
def archive():
    query = request.args.get("search", "").strip()
    posts = newest_first(get_services()["posts"].search(query))
    return render_template("archive.html", posts=posts, search=query)


@bp.route("/post/<int:post_id>")
def blog_post(post_id: int):
    services = get_services()
    post = services["posts"].increment_view(post_id)
    if not post:
        abort(404)
    comments = services["comments"].list_for_post(post_id)
    return render_template("post.html", post=post, comments=comments)


@bp.route("/post/<int:post_id>/comment", methods=["POST"])
def post_comment(post_id: int):
    get_services()["comments"].create(
        post_id,
        request.form.get("name", ""),
        request.form.get("comment", ""),
    )
    return redirect(url_for("blog.blog_post", post_id=post_id) + "#comments")


@bp.route("/projects")
def projects():
    items = sorted(get_services()["projects"].list(), key=lambda p: p.get("order", 0))
    return render_template("projects.html", projects=items)


@bp.route("/admin/login", methods=["GET", "POST"])
@bp.route("/admin", methods=["GET", "POST"])
def admin_login():
    if is_authenticated():
        return redirect(url_for("blog.admin_dashboard"))
    if request.method == "POST":
        password = request.form.get("password", "")
        if check_password(password):
            token = get_sessions().create()
            response = redirect(url_for("blog.admin_dashboard"))
            response.set_cookie(
                current_app.config["AUTH_COOKIE_NAME"],
                token,
                max_age=current_app.config["SESSION_LIFETIME"],
                path="/",
                httponly=True,
                samesite="Strict",
            )
            logger.info("admin logged in", extra={"remote_addr": request.remote_addr})
            return response
        logger.warning("admin login failed", extra={"remote_addr": request.remote_addr})
        return render_template("login_failed.html")
    return render_template("admin_login.html")


@bp.route("/admin/logout")
def admin_logout():
    get_sessions().destroy(session_token())
    response = redirect(url_for("blog.blog_index"))
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        "",
        max_age=0,
        path="/",
        httponly=True,
        samesite="Strict",
    )
    logger.info("admin logged out")
    return response


@bp.route("/admin/dashboard")
@login_required
def admin_dashboard():
    posts = newest_first(get_services()["posts"].list())
    return render_template(
        "admin_dashboard.html",
        posts=posts,
        excerpt_length=DASHBOARD_EXCERPT_LENGTH,
    )


@bp.route("/admin/create", methods=["POST"])
@login_required
def admin_create_post():
    get_services()["posts"].create(
        request.form.get("title", ""),
        request.form.get("body", ""),
        request.form.get("status", ""),
    )
    return redirect(url_for("blog.admin_dashboard"))


@bp.route("/admin/delete/<int:post_id>", methods=["POST"])
@login_required
def admin_delete_post(post_id: int):
    get_services()["posts"].delete(post_id)
    return redirect(url_for("blog.admin_dashboard"))


@bp.route("/admin/comments")
@login_required
def admin_comments():
    services = get_services()
    titles = {p["id"]: p.get("title", "") for p in services["posts"].list()}
    comments = newest_first(services["comments"].list())
    return render_template("admin_comments.html", comments=comments, titles=titles)


@bp.route("/admin/comments/<int:comment_id>/delete", methods=["POST"])
@login_required
def admin_delete_comment(comment_id: int):
    get_services()["comments"].delete(comment_id)
    return redirect(url_for("blog.admin_comments"))


def project_form() -> Dict:
    return {
        "title": request.form.get("title", ""),
        "description": request.form.get("description", ""),
        "url": request.form.get("url", ""),
        "status": request.form.get("status", "active"),
        "order": request.form.get("order", "0"),
    }


@bp.route("/admin/projects")
@login_required
def admin_projects():
    items = sorted(get_services()["projects"].list(), key=lambda p: p.get("order", 0))
    return render_template("admin_projects.html", projects=items)


@bp.route("/admin/projects/create", methods=["POST"])
@login_required
def admin_create_project():
    get_services()["projects"].create(**project_form())
    return redirect(url_for("blog.admin_projects"))


@bp.route("/admin/projects/<int:project_id>/edit", methods=["GET", "POST"])
@login_required
def admin_edit_project(project_id: int):
    service = get_services()["projects"]
    if request.method == "POST":
        if not service.update(project_id, **project_form()):
            abort(404)
        return redirect(url_for("blog.admin_projects"))
    project = service.get(project_id)
    if not project:
        abort(404)
    return render_template("admin_project_edit.html", project=project)


@bp.route("/admin/projects/<int:project_id>/delete", methods=["POST"])
@login_required
def admin_delete_project(project_id: int):
    get_services()["projects"].delete(project_id)
    return redirect(url_for("blog.admin_projects"))


def create_app(overrides: Optional[Dict] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config)
    if overrides:
        app.config.update(overrides)

    store = Store(app.config["DATA_DIR"], defaults={PROJECTS: SEED_PROJECTS})
    for name in (POSTS, COMMENTS, PROJECTS):
        store.ensure_initialized(name)

    comments = CommentService(store)
    app.extensions["content"] = {
        "store": store,
        "comments": comments,
        "posts": PostService(store, comments),
        "projects": ProjectService(store),
    }

    sessions = SessionRegistry(lifetime=app.config["SESSION_LIFETIME"])
    if app.config["SESSION_SWEEP_ENABLED"]:
        sessions.start_sweeper(app.config["SESSION_SWEEP_INTERVAL"])
    app.extensions["sessions"] = sessions

    app.register_blueprint(bp)
    return app


def main() -> None:
    configure_logging(config.LOG_LEVEL)
    app = create_app()
    if app.config["ADMIN_PASSWORD_HASH"] == config.DEFAULT_PASSWORD_HASH:
        logger.warning("default admin password in use; set ADMIN_PASSWORD_HASH")
    logger.info(
        "blog server starting",
        extra={"host": config.HOST, "port": config.PORT, "data_dir": str(app.config["DATA_DIR"])},
    )
    app.run(host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
