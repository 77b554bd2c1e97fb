"""
Pydantic models for the file ingestion API.

Shared data models across the application.
"""

from datetime import datetime
from typing import List, Optional, Dict, Any, Union
from pydantic import BaseModel


# =====================================================
# Trigger Models
# =====================================================

class TriggerRequest(BaseModel):
    """File trigger request; payload is a path, a list of paths or {directory, files}."""
    payload: Union[str, List[Any], Dict[str, Any], None] = None
    header: Dict[str, Any] = {}


class EmittedFile(BaseModel):
    """File handed to the downstream consumer."""
    file_name: str
    directory: str
    size: int
    last_modified: datetime


class TriggerError(BaseModel):
    """Error reported while handling a trigger request."""
    code: str
    message: str
    endpoint: str
    path: Optional[str] = None


class TriggerResponse(BaseModel):
    """Outcome of a trigger request."""
    emitted: List[EmittedFile] = []
    errors: List[TriggerError] = []


# =====================================================
# Status Models
# =====================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    adapter_state: str
    watch_dir: Optional[str] = None
    selector: str
    version: str
