"""
Export utilities for accumulated search results.
"""
import json
from typing import List

import pandas as pd

from .models import Listing

EXPORT_COLUMNS = [
    "id", "title", "price", "currency", "category_id", "category_name",
    "seller_id", "status", "created_at", "updated_at", "images",
    "attributes_json", "lat", "lng", "description",
]


def listings_to_frame(listings: List[Listing]) -> pd.DataFrame:
    """One row per listing, in result order."""
    rows = []
    for x in listings:
        rows.append({
            "id": x.id,
            "title": x.title,
            "price": x.price,
            "currency": x.currency,
            "category_id": x.category_id,
            "category_name": x.category_name,
            "seller_id": x.seller_id,
            "status": x.status,
            "created_at": x.created_at,
            "updated_at": x.updated_at,
            "images": "|".join(x.images) if x.images else "",
            "attributes_json": json.dumps(x.attributes, ensure_ascii=False),
            "lat": x.lat,
            "lng": x.lng,
            "description": x.description,
        })
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def listings_to_csv(listings: List[Listing]) -> bytes:
    return listings_to_frame(listings).to_csv(index=False).encode("utf-8")


def save_results(listings: List[Listing], out_path: str, logger=None) -> int:
    """Save listings to CSV or Excel file; returns the number of rows written."""
    df = listings_to_frame(listings)
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)

    if logger:
        logger.info(f">>> Saved {len(df)} rows to {out_path}")
    return len(df)
