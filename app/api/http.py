"""
Service-level endpoints: health check and the public/protected probe pair used
to check that authentication is wired up.
"""

from fastapi import APIRouter, Depends

from app.dependencies.auth import Identity, get_identity, require_identity
from app.schemas import MessageResponse, ProbeResponse

router = APIRouter(prefix="/api")

protected_router = APIRouter(
    prefix="/api/probe", tags=["Probe"], dependencies=[Depends(require_identity)]
)


@router.get("/", response_model=MessageResponse)
async def read_root():
    """API health check endpoint."""
    return MessageResponse(message="Taskkeeper API is running!")


@router.get("/probe/public", response_model=ProbeResponse, tags=["Probe"])
async def public_probe():
    return ProbeResponse(message="This endpoint is public.")


@protected_router.get("/protected", response_model=ProbeResponse)
async def protected_probe(identity: Identity = Depends(get_identity)):
    """Echo the caller's identity and the claims validated for this request."""
    return ProbeResponse(
        message="You are authenticated.",
        user_id=identity.user_id,
        username=identity.username,
        claims=identity.claims,
    )
