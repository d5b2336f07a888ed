"""
Dependency wiring for the FastAPI app.

Backends are built once by ``create_app`` and kept on ``app.state``; the
getters below hand them (or services built on them) to each request.
"""

from __future__ import annotations

from fastapi import Request

from outfits.adapter import SqlAuthAdapter
from outfits.config import Settings
from outfits.db import Database
from outfits.posts import PostService
from outfits.queue import CleanupQueue, InMemoryCleanupQueue, RedisCleanupQueue
from outfits.storage import InMemoryStorageClient, S3StorageClient, StorageClient
from outfits.users import UserService

IN_MEMORY_DATABASE_URL = "sqlite+pysqlite:///:memory:"


def build_database(settings: Settings) -> Database:
    if settings.use_in_memory_backends or not settings.database_url:
        return Database(IN_MEMORY_DATABASE_URL)
    return Database(settings.database_url)


def uses_in_memory_storage(settings: Settings) -> bool:
    return settings.use_in_memory_backends or not settings.s3_endpoint


def build_storage_client(settings: Settings) -> StorageClient:
    if uses_in_memory_storage(settings):
        return InMemoryStorageClient()
    return S3StorageClient(
        bucket=settings.s3_bucket,
        region=settings.s3_region,
        endpoint=settings.s3_endpoint,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
    )


def build_cleanup_queue(settings: Settings) -> CleanupQueue:
    if settings.use_in_memory_backends:
        return InMemoryCleanupQueue()
    if settings.redis_url:
        return RedisCleanupQueue(
            url=settings.redis_url, queue_key=settings.cleanup_queue_key
        )
    if uses_in_memory_storage(settings):
        return InMemoryCleanupQueue()
    # An in-process queue would never reach the cleanup worker.
    raise ValueError("REDIS_URL is required when S3 storage is configured")


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_storage_client(request: Request) -> StorageClient:
    return request.app.state.storage


def get_cleanup_queue(request: Request) -> CleanupQueue:
    return request.app.state.cleanup_queue


def get_auth_adapter(request: Request) -> SqlAuthAdapter:
    return SqlAuthAdapter(get_database(request))


def get_post_service(request: Request) -> PostService:
    return PostService(
        get_database(request),
        get_storage_client(request),
        get_cleanup_queue(request),
        upload_url_expires_in=request.app.state.settings.upload_url_expires_in,
    )


def get_user_service(request: Request) -> UserService:
    return UserService(
        get_database(request),
        get_storage_client(request),
        get_cleanup_queue(request),
        upload_url_expires_in=request.app.state.settings.upload_url_expires_in,
    )
