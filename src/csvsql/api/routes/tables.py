"""
csvsql Tables - Router.

CSV import, table listing/inspection and drop.
"""

import logging
import re
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile

from csvsql.config import Settings, get_settings
from csvsql.deps import DatabaseServiceDep, require_csv_import
from csvsql.exceptions import NotFoundException, ValidationException
from csvsql.schemas import (
    ImportResponse,
    SchemaResponse,
    SchemaTable,
    TableInfo,
    TableListResponse,
)

router = APIRouter(prefix="/api/v1", tags=["tables"])

logger = logging.getLogger(__name__)

_TABLE_NAME_RE = re.compile(r"^\w+$")


def table_name_from_filename(filename: str) -> str:
    """`Sales Data-2024.csv` -> `sales_data_2024`."""
    return re.sub(r"[^a-z0-9]", "_", Path(filename).stem.lower())


@router.post("/tables", response_model=ImportResponse, status_code=201, dependencies=[require_csv_import])
async def import_csv(
    service: DatabaseServiceDep,
    settings: Annotated[Settings, Depends(get_settings)],
    file: UploadFile = File(..., description="CSV file; first row is the header"),
    table_name: str | None = Form(default=None, description="Table name (defaults to the lower-cased file name stem)"),
):
    """
    Import a CSV file as an in-memory table.

    An existing table with the same name is replaced, never merged. An
    empty file imports nothing and returns `imported=false`.
    """
    if not file.filename:
        raise ValidationException("Filename is required")

    content = await file.read()
    if len(content) > settings.engine.max_upload_bytes:
        raise ValidationException(
            f"File exceeds {settings.engine.max_upload_bytes} bytes",
            errors=[{"field": "file", "size_bytes": len(content)}],
            status_code=413,
        )

    if table_name is None or not table_name.strip():
        name = table_name_from_filename(file.filename)
    else:
        name = table_name.strip()
        if not _TABLE_NAME_RE.match(name):
            raise ValidationException(
                f"Invalid table name '{name}': use letters, digits and underscores",
                errors=[{"field": "table_name", "value": name}],
            )

    logger.info(f"[import] {file.filename} -> '{name}' ({len(content)} bytes)")
    table = service.import_csv_bytes(file.filename, name, content)

    return ImportResponse(
        imported=table is not None,
        filename=file.filename,
        size_bytes=len(content),
        table=TableInfo.from_table(table) if table is not None else None,
    )


@router.get("/tables", response_model=TableListResponse)
async def list_tables(service: DatabaseServiceDep):
    """List table names in import order."""
    return TableListResponse(tables=service.list_tables())


@router.get("/tables/{name}", response_model=TableInfo)
async def get_table(name: str, service: DatabaseServiceDep):
    table = service.store.get_table(name)
    if table is None:
        raise NotFoundException("table", name)
    return TableInfo.from_table(table)


@router.delete("/tables/{name}", status_code=204)
async def drop_table(name: str, service: DatabaseServiceDep):
    if not service.drop_table(name):
        raise NotFoundException("table", name)


@router.get("/schema", response_model=SchemaResponse)
async def get_schema(service: DatabaseServiceDep):
    """Schema of the active connection (empty when nothing is active)."""
    return SchemaResponse(tables=[SchemaTable.from_schema(s) for s in service.get_schema()])
