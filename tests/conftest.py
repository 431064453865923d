"""Shared fixtures for cedar-acp tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from cedar_acp.entities import Entity, EntityStore
from cedar_acp.pdp import Authorizer, Request
from cedar_acp.pdp.expr import GetAttr, Var, VarName
from cedar_acp.values import Bool, EntityRef, EntityUID, Long, Record, String, Value


# ============================================================================
# Entity helpers
# ============================================================================


@pytest.fixture
def photo_store() -> EntityStore:
    """A small photo-sharing hierarchy.

    User::"alice" -> Group::"admins" -> Group::"staff"
    User::"bob"   -> Group::"staff"
    Photo::"vacation.jpg" -> Album::"trips"
    Action::"view", Action::"edit" -> Action::"readWrite"
    """
    return EntityStore(
        [
            Entity.create(
                EntityUID("User", "alice"),
                {"department": String("engineering"), "level": Long(7)},
                [EntityUID("Group", "admins")],
            ),
            Entity.create(EntityUID("User", "bob"), {"department": String("sales")}, [EntityUID("Group", "staff")]),
            Entity.create(EntityUID("Group", "admins"), parents=[EntityUID("Group", "staff")]),
            Entity.create(EntityUID("Group", "staff")),
            Entity.create(
                EntityUID("Photo", "vacation.jpg"),
                {"owner": EntityRef(EntityUID("User", "alice")), "private": Bool(False)},
                [EntityUID("Album", "trips")],
            ),
            Entity.create(EntityUID("Album", "trips")),
            Entity.create(EntityUID("Action", "view"), parents=[EntityUID("Action", "readWrite")]),
            Entity.create(EntityUID("Action", "edit"), parents=[EntityUID("Action", "readWrite")]),
        ]
    )


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Factory fixture to create Requests.

    Defaults to alice viewing vacation.jpg with an empty context.
    """

    def _make(
        principal: tuple[str, str] = ("User", "alice"),
        action: tuple[str, str] = ("Action", "view"),
        resource: tuple[str, str] = ("Photo", "vacation.jpg"),
        context: dict[str, Value] | None = None,
    ) -> Request:
        return Request(
            principal=EntityUID(*principal),
            action=EntityUID(*action),
            resource=EntityUID(*resource),
            context=Record.of(context),
        )

    return _make


@pytest.fixture
def authorizer() -> Authorizer:
    """Sequential authorizer without logging."""
    return Authorizer()


@pytest.fixture
def context_attr() -> Callable[..., Any]:
    """Factory for `context.a.b...` expressions."""

    def _make(*path: str) -> Any:
        expr: Any = Var(VarName.CONTEXT)
        for attr in path:
            expr = GetAttr(expr, attr)
        return expr

    return _make

