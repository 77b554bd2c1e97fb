"""
File trigger endpoint.

Hands an explicit list of files to the inbound adapter. The response lists
what was emitted downstream and every error scoped to this request.
"""

from typing import List

from fastapi import APIRouter, Request
from loguru import logger

from app.models.schemas import EmittedFile, TriggerError, TriggerRequest, TriggerResponse
from domains.file_ingest import FileIngestError, TriggerMessage

router = APIRouter()


@router.post("", response_model=TriggerResponse)
async def trigger_files(body: TriggerRequest, request: Request):
    """
    Ingest the files named in the payload.

    Args:
        body: Payload (path, list of paths or {directory, files}) and header

    Returns:
        Emitted files and request-scoped errors
    """
    adapter = request.app.state.adapter
    errors: List[FileIngestError] = []

    message = TriggerMessage(payload=body.payload, header=dict(body.header))
    emitted = await adapter.receive_trigger(message, on_error=errors.append)

    logger.info(f"Trigger handled: {len(emitted)} emitted, {len(errors)} failed")

    return TriggerResponse(
        emitted=[
            EmittedFile(
                file_name=item.file_name,
                directory=str(item.directory),
                size=item.file_stat.size,
                last_modified=item.file_stat.modified,
            )
            for item in emitted
        ],
        errors=[TriggerError(**error.as_dict()) for error in errors],
    )
