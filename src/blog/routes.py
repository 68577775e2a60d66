import logging
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Body, Depends, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PayloadError
from pymongo.errors import PyMongoError

from src.auth.deps import get_current_user
from src.blog.queries import build_post_filter, page_window, sort_direction
from src.database.connection import get_db
from src.models.schemas import BlogCreate, BlogUpdate
from src.utils.errors import Forbidden, InternalError, NotFound, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()

AUTHOR_PROJECTION = {"name": 1, "email": 1}


def _utcnow():
    # MongoDB keeps naive UTC datetimes at millisecond precision
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _clean_text(value):
    return value.strip() if isinstance(value, str) else value


def _clean_tags(tags):
    return [t.strip().lower() for t in tags or [] if t.strip()]


def _doc_to_dict(doc):
    if not doc:
        return None
    doc["id"] = str(doc["_id"])
    doc.pop("_id", None)
    if isinstance(doc.get("author"), ObjectId):
        doc["author"] = str(doc["author"])
    return doc


def _populate_authors(db, docs):
    """Replace each post's author id with the author's name and email."""
    ids = list({d["author"] for d in docs if d.get("author") is not None})
    users = {
        u["_id"]: {"id": str(u["_id"]), "name": u.get("name"), "email": u.get("email")}
        for u in db.users.find({"_id": {"$in": ids}}, AUTHOR_PROJECTION)
    }
    for doc in docs:
        doc["author"] = users.get(doc.get("author"))
        _doc_to_dict(doc)
    return docs


def _post_oid(post_id: str) -> ObjectId:
    if not ObjectId.is_valid(post_id):
        raise ValidationError("Invalid post id")
    return ObjectId(post_id)


def _load_owned_post(db, post_id: str, user, action: str):
    oid = _post_oid(post_id)
    post = db.posts.find_one({"_id": oid})
    if not post:
        raise NotFound("Post not found")
    if str(post.get("author")) != str(user["_id"]):
        logger.warning("User %s may not %s post %s", user["_id"], action, post_id)
        raise Forbidden(f"Not authorized to {action} this post")
    return post


@router.post("/", status_code=201)
def create_post(payload: BlogCreate, user=Depends(get_current_user), db=Depends(get_db)):
    title = _clean_text(payload.title)
    body = _clean_text(payload.body)
    if not title or not body:
        raise ValidationError("Title and body are required")

    now = _utcnow()
    doc = {
        "title": title,
        "body": body,
        "tags": _clean_tags(payload.tags),
        "author": user["_id"],
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        db.posts.insert_one(doc)
    except PyMongoError as exc:
        logger.exception("Failed to create blog post")
        raise InternalError("Failed to create blog post", exc) from exc
    logger.info("User %s created post %s", user["_id"], doc["_id"])
    return _doc_to_dict(doc)


@router.get("/")
def list_posts(
    limit: Optional[str] = None,
    skip: Optional[str] = None,
    tag: Optional[str] = None,
    author: Optional[str] = None,
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    sort: Optional[str] = None,
    db=Depends(get_db),
):
    page_limit, page_skip = page_window(limit, skip)
    query = build_post_filter(tag=tag, author=author, date_from=date_from, date_to=date_to)

    try:
        total = db.posts.count_documents(query)
        docs = list(
            db.posts.find(query)
            .sort("createdAt", sort_direction(sort))
            .skip(page_skip)
            .limit(page_limit)
        )
        posts = _populate_authors(db, docs)
    except PyMongoError as exc:
        logger.exception("Failed to list posts")
        raise InternalError("Failed to list posts", exc) from exc
    return {"total": total, "limit": page_limit, "skip": page_skip, "posts": posts}


@router.get("/{post_id}")
def get_post(post_id: str, db=Depends(get_db)):
    oid = _post_oid(post_id)
    try:
        doc = db.posts.find_one({"_id": oid})
        if not doc:
            raise NotFound("Post not found")
        return _populate_authors(db, [doc])[0]
    except PyMongoError as exc:
        logger.exception("Failed to get post %s", post_id)
        raise InternalError("Failed to get post", exc) from exc


@router.put("/{post_id}")
def update_post(
    post_id: str,
    payload: Optional[dict] = Body(None),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    try:
        post = _load_owned_post(db, post_id, user, "update")

        # field shapes are only checked once the caller is known to own the post
        try:
            update = BlogUpdate.model_validate(payload or {})
        except PayloadError as exc:
            raise RequestValidationError(exc.errors(include_url=False)) from exc

        changes = update.model_dump(exclude_unset=True)
        for field in ("title", "body"):
            if field in changes:
                changes[field] = _clean_text(changes[field])
                if not changes[field]:
                    raise ValidationError(f"{field.capitalize()} must not be empty")
        if "tags" in changes:
            changes["tags"] = _clean_tags(changes["tags"])

        if changes:
            changes["updatedAt"] = _utcnow()
            db.posts.update_one({"_id": post["_id"]}, {"$set": changes})
            logger.info("User %s updated post %s", user["_id"], post_id)
        updated = db.posts.find_one({"_id": post["_id"]})
        if not updated:
            # removed between the ownership check and the re-read
            raise NotFound("Post not found")
        return _populate_authors(db, [updated])[0]
    except PyMongoError as exc:
        logger.exception("Failed to update post %s", post_id)
        raise InternalError("Failed to update post", exc) from exc


@router.delete("/{post_id}")
def delete_post(post_id: str, user=Depends(get_current_user), db=Depends(get_db)):
    try:
        post = _load_owned_post(db, post_id, user, "delete")
        db.posts.delete_one({"_id": post["_id"]})
    except PyMongoError as exc:
        logger.exception("Failed to delete post %s", post_id)
        raise InternalError("Failed to delete post", exc) from exc
    logger.info("User %s deleted post %s", user["_id"], post_id)
    return {"message": "Post deleted"}
