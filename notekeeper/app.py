# notekeeper/app.py
from __future__ import annotations
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Query
from sqlmodel import Session

from .config import get_settings
from .db import check_connection, get_db_session, init_db
from .exceptions import register_exception_handlers
from .logs import setup_logging
from .middleware import add_middlewares
from .repository import NoteRepository
from .schemas import (
    ApiResponse,
    DeletedCount,
    FavoriteState,
    NoteCreate,
    NoteListItem,
    NoteOut,
    NoteSearch,
    NoteUpdate,
    PagedResponse,
    PinState,
    Statistics,
)
from .services import NoteService


def get_service(session: Session = Depends(get_db_session)) -> NoteService:
    return NoteService(NoteRepository(session))


def _not_found(note_id: int) -> HTTPException:
    return HTTPException(status_code=404, detail=f"找不到ID为{note_id}的记事")


router = APIRouter(prefix="/notes", tags=["notes"])


# ---------- collection ----------
@router.get("", response_model=PagedResponse[NoteListItem])
def api_list_notes(
    keyword: Optional[str] = None,
    tag: Optional[str] = None,
    category: Optional[str] = None,
    priority: Optional[str] = None,
    status: Optional[str] = None,
    is_pinned: Optional[bool] = Query(None, alias="isPinned"),
    is_favorite: Optional[bool] = Query(None, alias="isFavorite"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, alias="pageSize"),
    service: NoteService = Depends(get_service),
):
    search = NoteSearch(
        keyword=keyword,
        tag=tag,
        category=category,
        priority=priority,
        status=status,
        is_pinned=is_pinned,
        is_favorite=is_favorite,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size or get_settings().default_page_size,
    )
    return service.search_notes(search)


@router.post("", response_model=ApiResponse[NoteOut], status_code=201)
def api_create_note(payload: NoteCreate, service: NoteService = Depends(get_service)):
    note = service.create_note(payload)
    return ApiResponse[NoteOut].ok(note, "创建记事成功")


@router.delete("/batch", response_model=ApiResponse[DeletedCount])
def api_delete_notes(ids: list[int] = Body(...), service: NoteService = Depends(get_service)):
    if not ids:
        raise HTTPException(status_code=400, detail="请提供要删除的记事ID列表")
    removed = service.delete_notes(ids)
    return ApiResponse[DeletedCount].ok(DeletedCount(deleted_count=removed), f"成功删除{removed}条记事")


@router.get("/tags", response_model=ApiResponse[list[str]])
def api_tags(service: NoteService = Depends(get_service)):
    return ApiResponse[list[str]].ok(service.all_tags(), "获取标签列表成功")


@router.get("/categories", response_model=ApiResponse[list[str]])
def api_categories(service: NoteService = Depends(get_service)):
    return ApiResponse[list[str]].ok(service.all_categories(), "获取分类列表成功")


@router.get("/statistics", response_model=ApiResponse[Statistics])
def api_statistics(service: NoteService = Depends(get_service)):
    return ApiResponse[Statistics].ok(service.statistics(), "获取统计信息成功")


@router.get("/search", response_model=ApiResponse[list[NoteListItem]])
def api_quick_search(
    keyword: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    service: NoteService = Depends(get_service),
):
    if not keyword:
        raise HTTPException(status_code=400, detail="搜索关键词不能为空")
    notes = service.quick_search(keyword, limit or get_settings().quick_search_limit)
    return ApiResponse[list[NoteListItem]].ok(notes, "搜索完成")


# ---------- single note ----------
@router.get("/{note_id}", response_model=ApiResponse[NoteOut])
def api_get_note(note_id: int, service: NoteService = Depends(get_service)):
    note = service.get_note(note_id)
    if note is None:
        raise _not_found(note_id)
    return ApiResponse[NoteOut].ok(note, "获取记事详情成功")


@router.put("/{note_id}", response_model=ApiResponse[NoteOut])
def api_update_note(note_id: int, payload: NoteUpdate, service: NoteService = Depends(get_service)):
    note = service.update_note(note_id, payload)
    if note is None:
        raise _not_found(note_id)
    return ApiResponse[NoteOut].ok(note, "更新记事成功")


@router.delete("/{note_id}", response_model=ApiResponse[Any])
def api_delete_note(note_id: int, service: NoteService = Depends(get_service)):
    if not service.delete_note(note_id):
        raise _not_found(note_id)
    return ApiResponse[Any].ok(None, "删除记事成功")


@router.patch("/{note_id}/pin", response_model=ApiResponse[PinState])
def api_toggle_pin(note_id: int, service: NoteService = Depends(get_service)):
    pinned = service.toggle_pin(note_id)
    if pinned is None:
        raise _not_found(note_id)
    return ApiResponse[PinState].ok(PinState(is_pinned=pinned), "置顶成功" if pinned else "取消置顶成功")


@router.patch("/{note_id}/favorite", response_model=ApiResponse[FavoriteState])
def api_toggle_favorite(note_id: int, service: NoteService = Depends(get_service)):
    fav = service.toggle_favorite(note_id)
    if fav is None:
        raise _not_found(note_id)
    return ApiResponse[FavoriteState].ok(FavoriteState(is_favorite=fav), "收藏成功" if fav else "取消收藏成功")


# ---------- app ----------
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    add_middlewares(app)
    register_exception_handlers(app)

    @app.get("/health")
    def health():
        return {"status": "ok", "database": check_connection()}

    app.include_router(router, prefix=settings.api_prefix_normalized)
    return app


app = create_app()
