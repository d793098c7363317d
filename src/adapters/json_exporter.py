"""JSON export of page views.

Why JSON:
- Lets other tools (dashboards, static site generators) consume a portfolio.
- The view models already are the stable contract; this only serializes them.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel


def view_to_json(view: BaseModel) -> str:
    payload = view.model_dump(mode="json", by_alias=False)
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def export_view_json(*, view: BaseModel, output_path: Path) -> Path:
    """Write a view as stable, UTF-8 JSON."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(view_to_json(view), encoding="utf-8")
    return output_path
