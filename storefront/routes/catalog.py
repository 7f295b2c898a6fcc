"""
API route handlers for the category tree and listing-form schemas.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from catalog.client import BackendError, ListingsClient
from catalog.form_engine import FormSession, FormValidationError, UnknownCategoryError
from catalog.taxonomy import CatalogConfig

from ..dependencies import get_catalog, get_client
from ..models import (
    AttributeDefOut, CategoryNodeOut, FieldControlOut, FormSchemaOut,
    FormStateOut, FormValuesIn, SubmissionOut
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["catalog"])


def build_form_session(catalog: CatalogConfig, category_id: str, body: FormValuesIn) -> FormSession:
    """Rebuild a form from posted values and apply the optional field update."""
    session = FormSession(config=catalog, values=dict(body.values), errors=dict(body.errors))
    try:
        session.select_category(category_id)
    except UnknownCategoryError:
        raise HTTPException(status_code=404, detail="Unknown category")
    if body.key is not None:
        session.update(body.key, body.value)
    return session


def form_state(session: FormSession) -> FormStateOut:
    return FormStateOut(
        category_id=session.category_id,
        values=session.values,
        visible_fields=[f.key for f in session.visible_fields()],
        controls=[FieldControlOut.from_control(c) for c in session.render()],
        errors=session.errors,
        ok=not session.errors,
    )


@router.get("/categories", response_model=List[CategoryNodeOut])
async def get_categories(catalog: CatalogConfig = Depends(get_catalog)):
    """Get the category tree."""
    return [CategoryNodeOut.from_node(node) for node in catalog.categories]


@router.get("/categories/schema", response_model=Dict[str, AttributeDefOut])
async def get_category_schema(
    category_ids: List[str] = Query(default=[], alias="categoryId"),
    catalog: CatalogConfig = Depends(get_catalog)
):
    """Aggregated facet schema for the selected categories (all when none)."""
    schema = catalog.schema_for_selection(category_ids)
    return {key: AttributeDefOut.from_def(d) for key, d in schema.items()}


@router.get("/forms", response_model=List[FormSchemaOut])
async def get_form_schemas(catalog: CatalogConfig = Depends(get_catalog)):
    return [FormSchemaOut.from_schema(s) for s in catalog.forms]


@router.get("/forms/records/{record_id}", response_model=FormStateOut)
async def get_form_for_record(
    record_id: str,
    catalog: CatalogConfig = Depends(get_catalog),
    client: ListingsClient = Depends(get_client)
):
    """Load an existing listing record into its category's form."""
    try:
        record = await client.get_record(record_id)
    except BackendError as e:
        status = 404 if e.status == 404 else 502
        raise HTTPException(status_code=status, detail=e.message)
    session = FormSession.from_record(catalog, record)
    if session.category_id and catalog.form_schema(session.category_id) is None:
        logger.warning(f"Record {record_id} has unknown category {session.category_id!r}")
        session.category_id = ""
    return form_state(session)


@router.get("/forms/{category_id}", response_model=FormSchemaOut)
async def get_form_schema(category_id: str, catalog: CatalogConfig = Depends(get_catalog)):
    schema = catalog.form_schema(category_id)
    if schema is None:
        raise HTTPException(status_code=404, detail="Unknown category")
    return FormSchemaOut.from_schema(schema)


@router.post("/forms/{category_id}/render", response_model=FormStateOut)
async def render_form(
    category_id: str,
    body: FormValuesIn,
    catalog: CatalogConfig = Depends(get_catalog)
):
    """Apply one field change and return the visible controls. Never adds errors."""
    return form_state(build_form_session(catalog, category_id, body))


@router.post("/forms/{category_id}/validate", response_model=FormStateOut)
async def validate_form(
    category_id: str,
    body: FormValuesIn,
    catalog: CatalogConfig = Depends(get_catalog)
):
    session = build_form_session(catalog, category_id, body)
    session.validate()
    return form_state(session)


@router.post("/forms/{category_id}/submit", response_model=SubmissionOut)
async def submit_form(
    category_id: str,
    body: FormValuesIn,
    status: str = Query("draft"),
    record_id: Optional[str] = None,
    catalog: CatalogConfig = Depends(get_catalog),
    client: ListingsClient = Depends(get_client)
):
    """Validate and save the listing as a draft or publish it."""
    session = build_form_session(catalog, category_id, body)
    try:
        payload = session.submission(status)
    except FormValidationError as e:
        raise HTTPException(status_code=422, detail={"errors": e.errors})
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        record = await client.save_record(payload, record_id)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message)

    return SubmissionOut(payload=payload, record=record)
