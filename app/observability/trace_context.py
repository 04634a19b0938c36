"""Trace context (message correlation).

One trace id per inbound message; delegated a2a runs get their own trace id
but keep the parent's id in ``parent_trace_id`` so a chain can be followed
across nested pipeline runs.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator


_trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
_actor_id_var: ContextVar[str | None] = ContextVar("actor_id", default=None)
_parent_trace_id_var: ContextVar[str | None] = ContextVar("parent_trace_id", default=None)


def new_trace_id() -> str:
    return uuid.uuid4().hex


def get_trace_id() -> str | None:
    return _trace_id_var.get()


def get_actor_id() -> str | None:
    return _actor_id_var.get()


def get_parent_trace_id() -> str | None:
    return _parent_trace_id_var.get()


@contextmanager
def trace_scope(*, actor_id: str | None) -> Iterator[str]:
    """Bind a fresh trace id for the duration of one pipeline run."""

    parent = _trace_id_var.get()
    trace_id = new_trace_id()
    tokens = (
        _trace_id_var.set(trace_id),
        _actor_id_var.set(actor_id),
        _parent_trace_id_var.set(parent),
    )
    try:
        yield trace_id
    finally:
        _parent_trace_id_var.reset(tokens[2])
        _actor_id_var.reset(tokens[1])
        _trace_id_var.reset(tokens[0])
