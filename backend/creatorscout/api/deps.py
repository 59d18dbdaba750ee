from fastapi import Request

from creatorscout.db.store import CreatorStore


def get_store(request: Request) -> CreatorStore:
    """The store opened by the app lifespan."""
    return request.app.state.store
