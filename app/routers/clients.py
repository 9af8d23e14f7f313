"""Client endpoints - CRUD operations for clients."""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.database import get_database
from app.models.client import Client, ClientCreate, ClientUpdate
from app.models.user import User
from app.routers.auth import get_current_user
from app.services.client_service import ClientService
from app.services.errors import ConflictError, NotFoundError


router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=list[Client])
async def list_clients(
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """List clients sorted by name."""
    return await ClientService(db).list_clients()


@router.get("/{client_id}", response_model=Client)
async def get_client(
    client_id: str,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Get a client by ID."""
    try:
        return await ClientService(db).get_client(client_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=Client, status_code=status.HTTP_201_CREATED)
async def create_client(
    client_create: ClientCreate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Create a client.

    - Names are unique (case-insensitive)
    """
    try:
        return await ClientService(db).create_client(client_create)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put("/{client_id}", response_model=Client)
async def update_client(
    client_id: str,
    client_update: ClientUpdate,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Update a client."""
    try:
        return await ClientService(db).update_client(client_id, client_update)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: str,
    user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Delete a client.

    - Refused while tasks reference it
    """
    try:
        await ClientService(db).delete_client(client_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
