"""FastAPI application entrypoint.

Serve with ``uvicorn pintdiary.main:socket_app`` so the Socket.IO namespaces
share the HTTP server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from pintdiary import obs
from pintdiary.api import badges, feed, friends, ops, pints, places, stats, users
from pintdiary.api.errors import install_error_handlers
from pintdiary.domain.badges import sockets as badge_sockets
from pintdiary.infra import postgres
from pintdiary.infra.store import get_store
from pintdiary.infra.store.postgres_store import PostgresEntityStore
from pintdiary.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	store = get_store()
	if isinstance(store, PostgresEntityStore):
		await postgres.init_pool()
		await store.ensure_schema()
	logger.info("Pint diary API started", extra={"store": store.backend, "env": settings.environment})
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Pint Diary API", lifespan=lifespan)
install_error_handlers(app)
obs.init(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else [settings.public_base_url]
# Starlette disallows wildcard '*' with allow_credentials=True
if "*" in allow_origins:
	allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else [settings.public_base_url]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

# Photos written by the local object store are served directly in dev
if settings.is_dev():
	app.mount("/uploads", StaticFiles(directory=settings.upload_root, check_dir=False), name="uploads")

app.include_router(ops.router)
app.include_router(users.router)
app.include_router(pints.router)
app.include_router(stats.router)
app.include_router(friends.router)
app.include_router(feed.router)
app.include_router(badges.router)
app.include_router(places.router)

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
badges_namespace = badge_sockets.BadgesNamespace()
sio.register_namespace(badges_namespace)
badge_sockets.set_namespace(badges_namespace)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
