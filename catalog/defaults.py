"""
Bundled default catalog: category taxonomy with facet schemas and the
listing-form schema of each top-level category.

The shape matches the JSON accepted by ``CatalogConfig.from_file``.
"""

RADIUS_OPTIONS_KM = [5, 10, 25, 50, 100, 200]

CATEGORY_TREE = [
    {
        "id": "cat-1",
        "name": "Services",
        "slug": "services",
        "schema": {
            "duration": {"type": "range", "min": 0.5, "max": 8, "step": 0.5},
            "location": {
                "type": "select",
                "options": [
                    {"value": "remote", "label": "Remote"},
                    {"value": "onsite", "label": "On-site"},
                    {"value": "flexible", "label": "Flexible"},
                ],
            },
        },
        "children": [
            {"id": "cat-1a", "name": "Photography", "slug": "photography", "children": []},
            {"id": "cat-1b", "name": "Lessons", "slug": "lessons", "children": []},
        ],
    },
    {
        "id": "cat-2",
        "name": "Rentals",
        "slug": "rentals",
        "schema": {
            "priceMin": {"type": "range", "min": 0, "max": 500, "step": 10},
            "priceMax": {"type": "range", "min": 0, "max": 2000, "step": 50},
            "bedrooms": {
                "type": "checkbox",
                "options": [
                    {"value": "1", "label": "1 bed"},
                    {"value": "2", "label": "2 beds"},
                    {"value": "3", "label": "3+ beds"},
                ],
            },
        },
        "children": [
            {"id": "cat-2a", "name": "Apartments", "slug": "apartments", "children": []},
            {"id": "cat-2b", "name": "Vacation", "slug": "vacation", "children": []},
        ],
    },
    {
        "id": "cat-3",
        "name": "Goods",
        "slug": "goods",
        "schema": {
            "condition": {
                "type": "select",
                "options": [
                    {"value": "new", "label": "New"},
                    {"value": "like_new", "label": "Like new"},
                    {"value": "good", "label": "Good"},
                    {"value": "used", "label": "Used"},
                ],
            },
        },
        "children": [
            {"id": "cat-3a", "name": "Electronics", "slug": "electronics", "children": []},
            {"id": "cat-3b", "name": "Handmade", "slug": "handmade", "children": []},
        ],
    },
]

_CONDITION_OPTIONS = [
    {"value": "new", "label": "New"},
    {"value": "like_new", "label": "Like new"},
    {"value": "good", "label": "Good"},
    {"value": "used", "label": "Used"},
]

LISTING_FORM_SCHEMAS = [
    {
        "categoryId": "cat-1",
        "categoryName": "Services",
        "slug": "services",
        "fields": [
            {"key": "title", "label": "Title", "type": "text", "required": True,
             "placeholder": "e.g. Professional photography session",
             "hint": "Clear, descriptive title works best.",
             "example": "1-hour portrait photography"},
            {"key": "description", "label": "Description", "type": "rich-text", "required": True,
             "hint": "Describe what you offer, duration, and what's included."},
            {"key": "duration_hours", "label": "Duration (hours)", "type": "number", "required": True,
             "min": 0.5, "max": 24, "step": 0.5, "hint": "Typical session length."},
            {"key": "location_type", "label": "Location", "type": "select", "required": True,
             "options": [
                 {"value": "remote", "label": "Remote"},
                 {"value": "onsite", "label": "On-site"},
                 {"value": "flexible", "label": "Flexible"},
             ],
             "hint": "Where the service is delivered."},
            {"key": "location_address", "label": "Address or area", "type": "location",
             "showWhen": {"field": "location_type", "oneOf": ["onsite", "flexible"]},
             "hint": "City or area for on-site services."},
            {"key": "experience_years", "label": "Years of experience", "type": "number",
             "min": 0, "max": 50, "step": 1, "hint": "Optional."},
        ],
    },
    {
        "categoryId": "cat-2",
        "categoryName": "Rentals",
        "slug": "rentals",
        "fields": [
            {"key": "title", "label": "Title", "type": "text", "required": True,
             "placeholder": "e.g. Cozy downtown apartment", "hint": "Short, appealing title."},
            {"key": "description", "label": "Description", "type": "rich-text", "required": True,
             "hint": "Describe the space, amenities, and rules."},
            {"key": "bedrooms", "label": "Bedrooms", "type": "number", "required": True,
             "min": 1, "max": 20, "step": 1, "hint": "Number of bedrooms."},
            {"key": "bathrooms", "label": "Bathrooms", "type": "number",
             "min": 1, "max": 10, "step": 0.5, "hint": "Number of bathrooms."},
            {"key": "location", "label": "Location", "type": "location", "required": True,
             "hint": "Address or area."},
            {"key": "check_in_time", "label": "Check-in time", "type": "text",
             "placeholder": "e.g. 3:00 PM", "hint": "Default check-in."},
            {"key": "check_out_time", "label": "Check-out time", "type": "text",
             "placeholder": "e.g. 11:00 AM", "hint": "Default check-out."},
        ],
    },
    {
        "categoryId": "cat-3",
        "categoryName": "Goods",
        "slug": "goods",
        "fields": [
            {"key": "title", "label": "Title", "type": "text", "required": True,
             "placeholder": "e.g. Vintage camera bundle", "hint": "Product name and key detail."},
            {"key": "description", "label": "Description", "type": "rich-text", "required": True,
             "hint": "Condition, specs, and what's included."},
            {"key": "condition", "label": "Condition", "type": "select", "required": True,
             "options": _CONDITION_OPTIONS, "hint": "Item condition."},
            {"key": "brand", "label": "Brand", "type": "text", "hint": "Optional."},
            {"key": "location", "label": "Pickup / shipping location", "type": "location",
             "hint": "For local pickup or shipping origin."},
            {"key": "shipping_available", "label": "Shipping available", "type": "boolean",
             "hint": "Can you ship this item?"},
        ],
    },
]

DEFAULT_CATALOG = {
    "categories": CATEGORY_TREE,
    "forms": LISTING_FORM_SCHEMAS,
    "radiusOptionsKm": RADIUS_OPTIONS_KM,
}
