"""Layout editing endpoints.

Entering edit mode trades the shared edit secret for a short-lived bearer
token scoped to one rack. Saving a layout requires that token.

These endpoints are a stateless front end to the same edit session that
``LayoutEditor`` runs in process. The client holds the working copy between
requests: ``begin`` maps to the edit token, each drag to a ``move`` preview
through ``move_cell``, and ``save`` to ``registry.save_layout`` with the
authorization decoded from the token. Cancelling is simply not saving.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from rackbox.exceptions import InvalidCell, UnauthorizedLayoutEdit
from rackbox.models.rack import CellGeometry
from rackbox.routers.deps import DbSession, Gate, require_edit_token
from rackbox.schemas.rack import CellMove, EditRequest, EditTokenResponse, LayoutUpdate, RackResponse
from rackbox.services import registry
from rackbox.services.layout import move_cell

logger = logging.getLogger(__name__)

router = APIRouter()

EditToken = Annotated[str, Depends(require_edit_token)]


class MovePreviewRequest(BaseModel):
    """Working layout held by the editor plus one drag to apply to it."""

    cells: list[CellGeometry]
    move: CellMove


class MovePreviewResponse(BaseModel):
    cells: list[CellGeometry]
    moved: bool


class SecretChange(BaseModel):
    current_secret: str = Field(..., min_length=1)
    new_secret: str = Field(..., min_length=1)


@router.post("/racks/{rack_id}/layout/edit", response_model=EditTokenResponse)
async def begin_edit(rack_id: str, request: EditRequest, db: DbSession, gate: Gate) -> EditTokenResponse:
    """Exchange the edit secret for a layout edit token."""
    await registry.get_rack(db, rack_id)
    authorization = gate.authorize(request.secret, rack_id)
    return EditTokenResponse(
        edit_token=gate.issue_edit_token(authorization),
        rack_id=rack_id,
        expires_at=authorization.expires_at,
    )


@router.put("/racks/{rack_id}/layout", response_model=RackResponse)
async def save_layout(
    rack_id: str,
    update: LayoutUpdate,
    token: EditToken,
    db: DbSession,
    gate: Gate,
) -> RackResponse:
    """Replace the rack layout as a whole."""
    authorization = gate.verify_edit_token(token, rack_id)
    rack = await registry.save_layout(db, rack_id, update.cells, authorization)
    return RackResponse.model_validate(rack)


@router.post("/racks/{rack_id}/layout/move", response_model=MovePreviewResponse)
async def preview_move(
    rack_id: str,
    request: MovePreviewRequest,
    token: EditToken,
    gate: Gate,
) -> MovePreviewResponse:
    """Apply a clamped drag to the editor's working layout.

    Nothing is persisted; the client saves the result with ``PUT .../layout``.
    """
    gate.verify_edit_token(token, rack_id)
    cells = [cell.model_copy() for cell in request.cells]
    target = next((cell for cell in cells if cell.id == request.move.cell_id), None)
    if target is None:
        raise InvalidCell(
            f"Cell {request.move.cell_id} is not in the working layout",
            details={"rack_id": rack_id, "cell_index": request.move.cell_id},
        )
    moved = move_cell(target, request.move.dx, request.move.dy)
    return MovePreviewResponse(cells=cells, moved=moved)


@router.put("/access/secret", status_code=status.HTTP_204_NO_CONTENT)
async def change_secret(change: SecretChange, gate: Gate) -> None:
    """Replace the shared edit secret. The current one must be presented."""
    if not gate.check_secret(change.current_secret):
        raise UnauthorizedLayoutEdit("Current edit secret is incorrect")
    gate.set_secret(change.new_secret)
