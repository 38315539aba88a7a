"""
Forum endpoints: categories, threads, posts and moderation.
"""

import uuid
from typing import List

from fastapi import APIRouter, Response, status

from furioza.api.deps import CurrentActor, DbSession, OptionalActor
from furioza.engines.community.categories import CategoryService
from furioza.engines.community.threads import ThreadService
from furioza.orchestration.state_machine import ModerationAction, ModerationStateMachine
from furioza.schemas.forum import (
    CategoryCreate,
    CategoryResponse,
    PostCreate,
    PostResponse,
    ThreadCreate,
    ThreadDeleteResponse,
    ThreadListItem,
    ThreadResponse,
    ViewCountResponse,
)

router = APIRouter()


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: DbSession):
    """List forum categories in display order."""
    categories = await CategoryService(db).list_categories()
    return [CategoryResponse.model_validate(c) for c in categories]


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, actor: CurrentActor, db: DbSession):
    category = await CategoryService(db).create_category(
        actor, data.name, description=data.description, icon=data.icon,
    )
    return CategoryResponse.model_validate(category)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    await CategoryService(db).delete_category(actor, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/categories/{category_id}/threads", response_model=List[ThreadListItem])
async def list_threads(category_id: uuid.UUID, db: DbSession):
    """Threads of a category, pinned first."""
    await CategoryService(db).get_category(category_id)
    listings = await ThreadService(db).list_threads(category_id)
    return [
        ThreadListItem(
            **ThreadResponse.model_validate(item.thread).model_dump(),
            post_count=item.post_count,
        )
        for item in listings
    ]


@router.post(
    "/categories/{category_id}/threads",
    response_model=ThreadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_thread(category_id: uuid.UUID, data: ThreadCreate, actor: CurrentActor, db: DbSession):
    thread = await ThreadService(db).create_thread(actor, category_id, data.title, data.content)
    return ThreadResponse.model_validate(thread)


@router.get("/threads/{thread_id}", response_model=ThreadResponse)
async def get_thread(thread_id: uuid.UUID, db: DbSession):
    thread = await ThreadService(db).get_thread(thread_id)
    return ThreadResponse.model_validate(thread)


@router.post("/threads/{thread_id}/views", response_model=ViewCountResponse)
async def record_view(thread_id: uuid.UUID, viewer: OptionalActor, db: DbSession):
    """Count a view of the thread."""
    view_count = await ModerationStateMachine(db).increment_views(thread_id, viewer=viewer)
    return ViewCountResponse(thread_id=thread_id, view_count=view_count)


@router.get("/threads/{thread_id}/posts", response_model=List[PostResponse])
async def list_posts(thread_id: uuid.UUID, db: DbSession):
    posts = await ThreadService(db).list_posts(thread_id)
    return [PostResponse.model_validate(p) for p in posts]


@router.post(
    "/threads/{thread_id}/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(thread_id: uuid.UUID, data: PostCreate, actor: CurrentActor, db: DbSession):
    post = await ModerationStateMachine(db).create_post(
        actor,
        thread_id,
        data.content,
        image_urls=data.image_urls,
        flame_style=data.flame_style,
    )
    return PostResponse.model_validate(post)


@router.post("/threads/{thread_id}/{action}", response_model=ThreadResponse)
async def moderate_thread(
    thread_id: uuid.UUID,
    action: ModerationAction,
    actor: CurrentActor,
    db: DbSession,
):
    """Lock, unlock, pin or unpin a thread."""
    thread = await ModerationStateMachine(db).transition(actor, thread_id, action)
    return ThreadResponse.model_validate(thread)


@router.delete("/threads/{thread_id}", response_model=ThreadDeleteResponse)
async def delete_thread(thread_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    """Delete a thread and all of its posts."""
    deleted_posts = await ModerationStateMachine(db).delete_thread(actor, thread_id)
    return ThreadDeleteResponse(thread_id=thread_id, deleted_posts=deleted_posts)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    await ModerationStateMachine(db).delete_post(actor, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
