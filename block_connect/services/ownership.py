import logging

from block_connect.core.exceptions import AuthorizationError, NotFoundError
from block_connect.models.app_block import AppBlock
from block_connect.models.identity import Identity
from block_connect.repositories.app_block_repository import AppBlockRepository

logger = logging.getLogger(__name__)


async def require_owned_app_block(
    app_block_repository: AppBlockRepository,
    identity: Identity,
    app_block_id: str,
) -> AppBlock:
    """Load an app block the caller owns.

    A block owned by someone else fails exactly like a missing one.
    """
    app_block = await app_block_repository.find_by_id(app_block_id)
    if app_block is None:
        raise NotFoundError("App block", app_block_id)
    if not app_block.is_owned_by(identity.user_id):
        raise AuthorizationError(
            "App block",
            app_block_id,
            reason=f"user {identity.user_id} does not own app block {app_block_id}",
        )
    return app_block
