"""
csvsql Connections - Router.
"""

from fastapi import APIRouter

from csvsql.core.database_service import DatabaseConnection, DatabaseService
from csvsql.deps import DatabaseServiceDep
from csvsql.schemas import ConnectionCreate, ConnectionOut

router = APIRouter(prefix="/api/v1", tags=["connections"])


def _to_out(connection: DatabaseConnection, service: DatabaseService) -> ConnectionOut:
    active = service.get_active_connection()
    return ConnectionOut(
        id=connection.id,
        name=connection.name,
        type=connection.type,
        connected=connection.connected,
        active=active is not None and active.id == connection.id,
    )


@router.get("/connections", response_model=list[ConnectionOut])
async def list_connections(service: DatabaseServiceDep):
    return [_to_out(c, service) for c in service.get_all_connections()]


@router.post("/connections", response_model=ConnectionOut, status_code=201)
async def add_connection(body: ConnectionCreate, service: DatabaseServiceDep):
    """Register a connection. Only csv connections can be queried."""
    connection_id = service.add_connection(body.name, body.type, body.config)
    connection = next(c for c in service.get_all_connections() if c.id == connection_id)
    return _to_out(connection, service)


@router.post("/connections/{connection_id}/activate", response_model=ConnectionOut)
async def activate_connection(connection_id: str, service: DatabaseServiceDep):
    connection = service.set_active_connection(connection_id)
    return _to_out(connection, service)
