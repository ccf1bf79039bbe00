"""FastAPI dependencies for server endpoints.

Uses dependency injection instead of global state for better
testability and multi-worker safety.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, cast

from fastapi import Depends, HTTPException, Request

if TYPE_CHECKING:
    from tilbot.runtime.registry import SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    """Dependency to get the session registry.

    Raises:
        HTTPException: 503 if no project is loaded
    """
    registry = getattr(request.app.state, "registry", None)

    if registry is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "Service temporarily unavailable",
                "message": "No project is loaded. Check the server configuration.",
            },
        )

    # Import at runtime to avoid circular imports
    from tilbot.runtime.registry import SessionRegistry as SessionRegistryClass

    return cast(SessionRegistryClass, registry)


# Type aliases for cleaner endpoint signatures
RegistryDep = Annotated["SessionRegistry", Depends(get_registry)]
