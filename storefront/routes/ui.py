"""
Web UI route handlers: the htmx browse page and the create/edit listing form.
"""
import json
import logging
from html import escape
from typing import Any, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from catalog.client import BackendError, ListingsClient
from catalog.facets import facet_entries
from catalog.filters import FilterControl, parse_filter_input, render_filters
from catalog.form_engine import (
    SUBMIT_STATUSES, FieldControl, FormSession, FormValidationError, UnknownCategoryError
)
from catalog.models import FieldKind, Listing
from catalog.query import (
    Sort, View, clear_filters, set_attribute, toggle_attribute_option,
    toggle_category, update_filters
)
from catalog.taxonomy import CatalogConfig
from catalog.utils import to_number

from ..dependencies import get_catalog, get_client, get_session, get_sessions
from ..models import AttributeValueIn, FiltersPatch, ListingFormIn, OptionToggleIn
from ..sessions import BrowseSession, BrowseSessionStore

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ui"])

PAGE_HTML = '''<!doctype html>
<html lang="en" class="h-full">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{title}</title>
  <script src="https://unpkg.com/htmx.org@1.9.12"></script>
  <script src="https://unpkg.com/htmx.org@1.9.12/dist/ext/json-enc.js"></script>
  <script src="https://cdn.tailwindcss.com"></script>
  <style>.truncate-2{{display:-webkit-box;-webkit-line-clamp:2;-webkit-box-orient:vertical;overflow:hidden}}</style>
</head>
<body class="h-full bg-slate-50 text-slate-900" hx-ext="json-enc">
<div class="max-w-7xl mx-auto px-4 py-6">
  <div class="flex items-center justify-between mb-4">
    <h1 class="text-2xl font-semibold">{title}</h1>
    <nav class="space-x-3 text-sm">
      <a class="text-blue-600 underline" href="/">Browse</a>
      <a class="text-blue-600 underline" href="/ui/listings/new">Create listing</a>
    </nav>
  </div>
  {body}
</div>
</body></html>'''

SORT_LABELS = {
    Sort.RELEVANCE: "Relevance",
    Sort.NEWEST: "Newest",
    Sort.PRICE_ASC: "Price ↑",
    Sort.PRICE_DESC: "Price ↓",
    Sort.RATING: "Rating",
}

INPUT_CLASS = "border rounded px-3 py-2 w-full"


def render_page(title: str, body: str) -> HTMLResponse:
    return HTMLResponse(PAGE_HTML.format(title=escape(title), body=body))


def hx_vals(**values: Any) -> str:
    return escape(json.dumps(values), quote=True)


def _selected(flag: bool) -> str:
    return " selected" if flag else ""


def _checked(flag: bool) -> str:
    return " checked" if flag else ""


def _number_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# Browse page
# ---------------------------------------------------------------------------

def _search_form(session: BrowseSession) -> str:
    f = session.filters
    html_parts = [
        f'<form class="grid grid-cols-1 md:grid-cols-6 gap-3 mb-4" '
        f'hx-post="/ui/browse/{session.id}/search" hx-target="#browse" hx-swap="outerHTML" '
        f'hx-trigger="submit, change">'
    ]
    html_parts.append(
        f'<input class="{INPUT_CLASS} md:col-span-2" type="text" name="keyword" '
        f'value="{escape(f.keyword)}" placeholder="Search listings"/>'
    )
    html_parts.append(
        f'<input class="{INPUT_CLASS}" type="text" name="location" '
        f'value="{escape(f.location)}" placeholder="Location"/>'
    )

    html_parts.append(f'<select class="{INPUT_CLASS}" name="radius_km">')
    radii = list(session.catalog.radius_options_km)
    if f.radius_km not in radii:
        radii.append(f.radius_km)
    for km in radii:
        html_parts.append(
            f'<option value="{_number_text(km)}"{_selected(km == f.radius_km)}>{_number_text(km)} km</option>'
        )
    html_parts.append('</select>')

    html_parts.append(f'<select class="{INPUT_CLASS}" name="sort">')
    for sort, label in SORT_LABELS.items():
        html_parts.append(f'<option value="{sort.value}"{_selected(sort == f.sort)}>{label}</option>')
    html_parts.append('</select>')

    html_parts.append(f'<select class="{INPUT_CLASS}" name="view">')
    for view in View:
        html_parts.append(
            f'<option value="{view.value}"{_selected(view == f.view)}>{view.value.title()}</option>'
        )
    html_parts.append('</select>')
    html_parts.append('</form>')
    return ''.join(html_parts)


def _facet_tree(session: BrowseSession) -> str:
    html_parts = ['<div class="bg-white rounded-lg shadow p-3 mb-4">']
    html_parts.append('<h3 class="font-medium mb-2">Categories</h3><ul class="space-y-1 text-sm">')
    for entry in facet_entries(session.catalog.categories, session.filters.category_ids):
        weight = " font-medium" if entry.has_children else ""
        html_parts.append(
            f'<li style="padding-left:{entry.depth * 1.25}rem"><label class="flex items-center gap-2{weight}">'
            f'<input type="checkbox"{_checked(entry.selected)} '
            f'hx-post="/ui/browse/{session.id}/categories/{escape(entry.id)}/toggle" '
            f'hx-target="#browse" hx-swap="outerHTML"/>'
            f'{escape(entry.name)}</label></li>'
        )
    html_parts.append('</ul></div>')
    return ''.join(html_parts)


def _filter_control(session: BrowseSession, control: FilterControl) -> str:
    target = 'hx-target="#browse" hx-swap="outerHTML"'
    put_url = f'/ui/browse/{session.id}/attributes/{escape(control.key)}'
    html_parts = [f'<div class="mb-3"><div class="text-sm text-slate-600 mb-1">{escape(control.label)}</div>']

    if control.kind == "range":
        html_parts.append(
            f'<input class="w-full" type="range" name="value" min="{_number_text(control.min)}" '
            f'max="{_number_text(control.max)}" step="{_number_text(control.step)}" '
            f'value="{escape(_number_text(control.value))}" hx-post="{put_url}" hx-trigger="change" {target}/>'
        )
        html_parts.append(f'<div class="text-xs text-slate-500">{escape(_number_text(control.value))}</div>')
    elif control.kind == "select":
        html_parts.append(f'<select class="{INPUT_CLASS}" name="value" hx-post="{put_url}" {target}>')
        html_parts.append(f'<option value=""{_selected(control.value in ("", None))}>Any</option>')
        for option in control.options:
            html_parts.append(
                f'<option value="{escape(option["value"])}"{_selected(option["selected"])}>'
                f'{escape(option["label"])}</option>'
            )
        html_parts.append('</select>')
    else:
        for option in control.options:
            html_parts.append(
                f'<label class="flex items-center gap-2 text-sm">'
                f'<input type="checkbox"{_checked(option["selected"])} hx-post="{put_url}/toggle" '
                f'hx-vals="{hx_vals(value=option["value"])}" {target}/>'
                f'{escape(option["label"])}</label>'
            )
    html_parts.append('</div>')
    return ''.join(html_parts)


def _listing_card(listing: Listing, view: View) -> str:
    price = f'{_number_text(listing.price)} {escape(listing.currency)}'.strip() if listing.price is not None else '-'
    thumb = listing.images[0] if listing.images else ''
    if thumb:
        image = f'<img src="{escape(thumb)}" class="w-full h-40 object-cover rounded" loading="lazy" alt="Photo"/>'
    else:
        image = '<div class="w-full h-40 bg-slate-100 rounded flex items-center justify-center text-slate-400 text-xs">No photo</div>'

    if view == View.LIST:
        return (
            f'<div class="bg-white rounded-lg shadow p-3 flex gap-3">'
            f'<div class="w-32 shrink-0">{image}</div>'
            f'<div><div class="font-medium">{escape(listing.title)}</div>'
            f'<div class="text-sm">{price}</div>'
            f'<div class="text-xs text-slate-500 truncate-2">{escape(listing.description)}</div></div></div>'
        )
    if view == View.MAP:
        where = (
            f'{listing.lat:.4f}, {listing.lng:.4f}'
            if listing.lat is not None and listing.lng is not None else 'No location'
        )
        return (
            f'<div class="bg-white rounded-lg shadow p-3 flex justify-between">'
            f'<span class="font-medium">{escape(listing.title)}</span>'
            f'<span class="text-xs text-slate-500">{where}</span></div>'
        )
    return (
        f'<div class="bg-white rounded-lg shadow p-3">{image}'
        f'<div class="font-medium truncate-2 mt-2">{escape(listing.title)}</div>'
        f'<div class="text-sm">{price}</div>'
        f'<div class="text-xs text-slate-500">{escape(listing.category_name)}</div></div>'
    )


def _results(session: BrowseSession) -> str:
    state = session.controller.snapshot()
    view = session.filters.view
    button = 'px-3 py-2 rounded border'
    target = 'hx-target="#browse" hx-swap="outerHTML"'
    html_parts = ['<div>']

    html_parts.append('<div class="flex items-center justify-between mb-3 text-sm text-slate-600">')
    html_parts.append(f'<div>{len(state.items)} of {state.total} listings</div>')
    html_parts.append(
        f'<a class="{button}" href="/api/browse/{session.id}/export.csv" target="_blank">Export CSV</a>'
    )
    html_parts.append('</div>')

    if state.error:
        html_parts.append(
            f'<div class="bg-red-50 text-red-700 rounded p-3 mb-3 flex justify-between items-center">'
            f'<span>{escape(state.error)}</span>'
            f'<button class="{button}" hx-post="/ui/browse/{session.id}/retry" {target}>Retry</button></div>'
        )

    if state.is_empty:
        html_parts.append(
            f'<div class="text-center text-slate-500 py-12">'
            f'<div class="text-lg mb-3">No listings found</div>'
            f'<button class="{button}" hx-post="/ui/browse/{session.id}/clear" {target}>Clear filters</button></div>'
        )
    else:
        layout = "grid grid-cols-1 sm:grid-cols-2 lg:grid-cols-3 gap-3" if view == View.GRID else "space-y-2"
        html_parts.append(f'<div class="{layout}">')
        for listing in state.items:
            html_parts.append(_listing_card(listing, view))
        html_parts.append('</div>')

    if state.has_more:
        label = "Loading…" if state.is_fetching_next_page else "Load more"
        html_parts.append(
            f'<div class="text-center mt-4"><button class="{button}" '
            f'hx-post="/ui/browse/{session.id}/load-more" {target}>{label}</button></div>'
        )
    html_parts.append('</div>')
    return ''.join(html_parts)


def render_browse(session: BrowseSession) -> str:
    """The swappable browse panel of one session."""
    html_parts = [f'<div id="browse" data-session="{session.id}">']
    html_parts.append(_search_form(session))
    html_parts.append('<div class="grid grid-cols-1 md:grid-cols-4 gap-4">')
    html_parts.append('<aside>')
    html_parts.append(_facet_tree(session))
    controls = render_filters(session.schema(), session.filters.attributes)
    if controls:
        html_parts.append('<div class="bg-white rounded-lg shadow p-3">')
        html_parts.append('<h3 class="font-medium mb-2">Filters</h3>')
        for control in controls:
            html_parts.append(_filter_control(session, control))
        html_parts.append('</div>')
    html_parts.append(
        f'<button class="mt-3 text-sm text-blue-600 underline" hx-post="/ui/browse/{session.id}/clear" '
        f'hx-target="#browse" hx-swap="outerHTML">Clear filters</button>'
    )
    html_parts.append('</aside>')
    html_parts.append(f'<section class="md:col-span-3">{_results(session)}</section>')
    html_parts.append('</div></div>')
    return ''.join(html_parts)


@router.get('/', response_class=HTMLResponse)
async def index(sessions: BrowseSessionStore = Depends(get_sessions)):
    """Browse page; every visit opens a new browse session."""
    session = sessions.create()
    await session.controller.start()
    return render_page("Marketplace", render_browse(session))


@router.get('/ui/browse/{session_id}', response_class=HTMLResponse)
async def ui_browse(session: BrowseSession = Depends(get_session)):
    return HTMLResponse(render_browse(session))


@router.post('/ui/browse/{session_id}/search', response_class=HTMLResponse)
async def ui_search(patch: FiltersPatch, session: BrowseSession = Depends(get_session)):
    await session.apply(update_filters(session.filters, **patch.model_dump(exclude_none=True)))
    return HTMLResponse(render_browse(session))


@router.post('/ui/browse/{session_id}/categories/{category_id}/toggle', response_class=HTMLResponse)
async def ui_toggle_category(category_id: str, session: BrowseSession = Depends(get_session)):
    if session.catalog.find_category(category_id) is None:
        raise HTTPException(status_code=404, detail="Unknown category")
    await session.apply(toggle_category(session.filters, category_id))
    return HTMLResponse(render_browse(session))


@router.post('/ui/browse/{session_id}/attributes/{key}', response_class=HTMLResponse)
async def ui_set_attribute(key: str, body: AttributeValueIn, session: BrowseSession = Depends(get_session)):
    value = parse_filter_input(session.schema().get(key), body.value)
    await session.apply(set_attribute(session.filters, key, value))
    return HTMLResponse(render_browse(session))


@router.post('/ui/browse/{session_id}/attributes/{key}/toggle', response_class=HTMLResponse)
async def ui_toggle_attribute(key: str, body: OptionToggleIn, session: BrowseSession = Depends(get_session)):
    await session.apply(toggle_attribute_option(session.filters, key, body.value))
    return HTMLResponse(render_browse(session))


@router.post('/ui/browse/{session_id}/load-more', response_class=HTMLResponse)
async def ui_load_more(session: BrowseSession = Depends(get_session)):
    await session.controller.load_more()
    return HTMLResponse(render_browse(session))


@router.post('/ui/browse/{session_id}/retry', response_class=HTMLResponse)
async def ui_retry(session: BrowseSession = Depends(get_session)):
    await session.controller.retry()
    return HTMLResponse(render_browse(session))


@router.post('/ui/browse/{session_id}/clear', response_class=HTMLResponse)
async def ui_clear(session: BrowseSession = Depends(get_session)):
    await session.apply(clear_filters(session.default_filters))
    return HTMLResponse(render_browse(session))


# ---------------------------------------------------------------------------
# Create/edit listing form
# ---------------------------------------------------------------------------

def _field_control(control: FieldControl) -> str:
    post = 'hx-post="/ui/listings/form" hx-target="#listing-form" hx-swap="outerHTML" hx-include="#form-state"'
    key = escape(control.key)
    vals = hx_vals(key=control.key)
    required = ' <span class="text-red-600">*</span>' if control.required else ''
    placeholder = f' placeholder="{escape(control.placeholder)}"' if control.placeholder else ''

    html_parts = [f'<div class="mb-4" id="field-{key}">']
    html_parts.append(f'<label class="block text-sm font-medium mb-1">{escape(control.label)}{required}</label>')

    if control.input_type == "textarea":
        html_parts.append(
            f'<textarea class="{INPUT_CLASS}" name="value" rows="{control.rows or 2}"{placeholder} '
            f'hx-trigger="change" hx-vals="{vals}" {post}>{escape(str(control.value))}</textarea>'
        )
    elif control.input_type == "select":
        html_parts.append(f'<select class="{INPUT_CLASS}" name="value" hx-vals="{vals}" {post}>')
        if not control.is_set:
            html_parts.append('<option value="" selected>Select…</option>')
        for option in control.options:
            html_parts.append(
                f'<option value="{escape(option["value"])}"{_selected(option["selected"] and control.is_set)}>'
                f'{escape(option["label"])}</option>'
            )
        html_parts.append('</select>')
    elif control.input_type == "multi-select":
        html_parts.append('<div class="flex flex-wrap gap-2">')
        for option in control.options:
            style = "bg-slate-800 text-white" if option["selected"] else "border"
            html_parts.append(
                f'<button type="button" class="px-3 py-1 rounded text-sm {style}" '
                f'hx-vals="{hx_vals(key=control.key, value=option["value"])}" {post}>'
                f'{escape(option["label"])}</button>'
            )
        html_parts.append('</div>')
    elif control.input_type == "switch":
        html_parts.append(
            f'<input type="checkbox"{_checked(bool(control.value))} '
            f'hx-vals="{hx_vals(key=control.key, value="false" if control.value else "true")}" {post}/>'
        )
    elif control.input_type == "number":
        bounds = ''.join(
            f' {name}="{_number_text(v)}"'
            for name, v in (("min", control.min), ("max", control.max), ("step", control.step))
            if v is not None
        )
        html_parts.append(
            f'<input class="{INPUT_CLASS}" type="number" name="value"{bounds}{placeholder} '
            f'value="{escape(_number_text(control.value))}" hx-trigger="change" hx-vals="{vals}" {post}/>'
        )
    else:
        html_parts.append(
            f'<input class="{INPUT_CLASS}" type="{control.input_type}" name="value"{placeholder} '
            f'value="{escape(str(control.value))}" hx-trigger="change" hx-vals="{vals}" {post}/>'
        )

    if control.hint:
        html_parts.append(f'<div class="text-xs text-slate-500 mt-1">{escape(control.hint)}</div>')
    if control.example:
        html_parts.append(f'<div class="text-xs text-slate-400">e.g. {escape(control.example)}</div>')
    if control.error:
        html_parts.append(f'<div class="text-sm text-red-600 mt-1">{escape(control.error)}</div>')
    html_parts.append('</div>')
    return ''.join(html_parts)


def render_listing_form(session: FormSession, notice: Optional[Tuple[str, str]] = None) -> str:
    """The swappable listing form; its whole state rides in a hidden input."""
    state = json.dumps({
        "category_id": session.category_id,
        "values": session.values,
        "errors": session.errors,
        "record_id": session.record_id,
    })
    post = 'hx-post="/ui/listings/form" hx-target="#listing-form" hx-swap="outerHTML" hx-include="#form-state"'
    html_parts = ['<div id="listing-form" class="bg-white rounded-xl shadow border p-4 max-w-2xl">']
    html_parts.append(f'<input type="hidden" id="form-state" name="state" value="{escape(state, quote=True)}"/>')

    if notice:
        kind, message = notice
        color = "bg-emerald-50 text-emerald-700" if kind == "ok" else "bg-red-50 text-red-700"
        html_parts.append(f'<div class="{color} rounded p-3 mb-4">{escape(message)}</div>')

    html_parts.append('<div class="mb-4"><label class="block text-sm font-medium mb-1">Category</label>')
    html_parts.append(
        f'<select class="{INPUT_CLASS}" name="value" hx-vals="{hx_vals(key="category_id")}" {post}>'
    )
    html_parts.append(f'<option value=""{_selected(not session.category_id)}>Select a category</option>')
    for schema in session.config.forms:
        html_parts.append(
            f'<option value="{escape(schema.category_id)}"{_selected(schema.category_id == session.category_id)}>'
            f'{escape(schema.category_name)}</option>'
        )
    html_parts.append('</select>')
    if session.errors.get("category_id"):
        html_parts.append(f'<div class="text-sm text-red-600 mt-1">{escape(session.errors["category_id"])}</div>')
    html_parts.append('</div>')

    for control in session.render():
        html_parts.append(_field_control(control))

    html_parts.append('<div class="flex gap-2">')
    buttons = (
        ("validate", "Check", "border"),
        ("draft", "Save draft", "border"),
        ("active", "Publish", "bg-slate-800 text-white"),
    )
    for action, label, style in buttons:
        html_parts.append(
            f'<button type="button" class="px-3 py-2 rounded {style}" '
            f'hx-vals="{hx_vals(action=action)}" {post}>{label}</button>'
        )
    html_parts.append('</div></div>')
    return ''.join(html_parts)


def load_form_state(catalog: CatalogConfig, state: str) -> FormSession:
    try:
        data = json.loads(state or "{}")
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Malformed form state")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Malformed form state")

    session = FormSession(
        config=catalog,
        values=dict(data.get("values") or {}),
        errors=dict(data.get("errors") or {}),
        record_id=data.get("record_id"),
    )
    category_id = data.get("category_id") or ""
    if catalog.form_schema(category_id) is not None:
        session.category_id = category_id
    return session


def form_input(session: FormSession, key: str, raw: Any) -> Any:
    """Number inputs post strings; store them as numbers ('' when cleared)."""
    schema = session.schema
    definition = schema.field(key) if schema else None
    if definition is not None and definition.kind == FieldKind.NUMBER and isinstance(raw, str):
        number = to_number(raw)
        return "" if number is None else number
    return raw


async def submit_listing(
    session: FormSession,
    client: ListingsClient,
    status: str
) -> Optional[Tuple[str, str]]:
    """Save the form; returns the notice to show, None when fields need fixing."""
    try:
        payload = session.submission(status)
    except FormValidationError as e:
        logger.debug(f"Listing form not submitted: {e}")
        return None
    try:
        record = await client.save_record(payload, session.record_id)
    except BackendError as e:
        return ("error", e.message)
    if record.get("id") is not None:
        session.record_id = str(record["id"])
    return ("ok", "Listing published." if status == "active" else "Draft saved.")


@router.get('/ui/listings/new', response_class=HTMLResponse)
async def ui_new_listing(
    category_id: str = "",
    record_id: Optional[str] = None,
    catalog: CatalogConfig = Depends(get_catalog),
    client: ListingsClient = Depends(get_client)
):
    """Create/edit listing page; ``record_id`` loads an existing record."""
    if record_id:
        try:
            record = await client.get_record(record_id)
        except BackendError as e:
            raise HTTPException(status_code=404 if e.status == 404 else 502, detail=e.message)
        session = FormSession.from_record(catalog, record)
        if session.category_id and catalog.form_schema(session.category_id) is None:
            session.category_id = ""
        session.record_id = session.record_id or record_id
        title = "Edit listing"
    else:
        session = FormSession(config=catalog)
        try:
            session.select_category(category_id)
        except UnknownCategoryError:
            raise HTTPException(status_code=404, detail="Unknown category")
        title = "Create listing"
    return render_page(title, render_listing_form(session))


@router.post('/ui/listings/form', response_class=HTMLResponse)
async def ui_listing_form(
    body: ListingFormIn,
    catalog: CatalogConfig = Depends(get_catalog),
    client: ListingsClient = Depends(get_client)
):
    """Re-render the form after one change or button press."""
    session = load_form_state(catalog, body.state)

    if body.key == "category_id":
        try:
            session.select_category(str(body.value or ""))
        except UnknownCategoryError:
            raise HTTPException(status_code=404, detail="Unknown category")
    elif body.key:
        session.update(body.key, form_input(session, body.key, body.value))

    notice = None
    if body.action == "validate":
        session.validate()
    elif body.action in SUBMIT_STATUSES:
        notice = await submit_listing(session, client, body.action)
    elif body.action:
        raise HTTPException(status_code=400, detail=f"Unknown action: {body.action}")

    return HTMLResponse(render_listing_form(session, notice))
