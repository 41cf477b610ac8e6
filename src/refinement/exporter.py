"""Export of the visible collection to delimited text and printable HTML."""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from dataclasses import dataclass
from html import escape

from src.shared.models import ExportFormat, Product

EXPORT_BASENAME = "equipment_export"

FIXED_COLUMNS = ["Brand", "Model", "Price", "Currency", "Supplier", "URL", "Condition"]

_PRINT_STYLE = (
    "body{font-family:sans-serif;margin:2em} table{border-collapse:collapse;width:100%} "
    "th,td{border:1px solid #ddd;padding:8px;text-align:left} th{background-color:#f2f2f2} "
    "tr:nth-child(even){background-color:#f9f9f9} "
    "img{max-width:80px;max-height:80px;vertical-align:middle} h1{font-size:1.5em}"
)


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    media_type: str
    content: str


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def spec_columns(products: Sequence[Product]) -> list[str]:
    """Union of spec keys across ``products``, in first-seen order."""
    seen: dict[str, None] = {}
    for product in products:
        for key in product.specs:
            seen.setdefault(key, None)
    return list(seen)


def to_delimited(products: Sequence[Product]) -> str | None:
    """Serialize to comma-separated text with every field quoted.

    Returns None for an empty collection.
    """
    if not products:
        return None

    extra = spec_columns(products)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([*FIXED_COLUMNS, *extra])
    for p in products:
        writer.writerow([
            p.brand,
            p.model,
            _format_number(p.price),
            p.currency,
            p.supplier,
            p.product_url,
            p.condition,
            *(p.specs.get(key, "") for key in extra),
        ])
    return buffer.getvalue()


def _printable_price(product: Product) -> str:
    if product.price <= 0:
        return "N/A"
    amount = f"{product.price:,.2f}".rstrip("0").rstrip(".")
    return f"{amount} {product.currency}"


def to_printable(products: Sequence[Product]) -> str | None:
    """Render a self-contained HTML table that prints itself on load.

    Returns None for an empty collection.
    """
    if not products:
        return None

    rows = []
    for p in products:
        rows.append(
            "<tr>"
            f'<td><img src="{escape(p.image_url)}" alt="{escape(p.model)}"></td>'
            f"<td><b>{escape(p.brand)}</b><br>{escape(p.model)}</td>"
            f"<td>{escape(_printable_price(p))}</td>"
            f"<td>{escape(p.supplier)}</td>"
            "</tr>"
        )

    return (
        "<html><head><title>Equipment Export</title>"
        f"<style>{_PRINT_STYLE}</style>"
        "</head><body>"
        f"<h1>Search Results ({len(products)} items)</h1>"
        "<table>"
        "<tr><th>Image</th><th>Brand &amp; Model</th><th>Price</th><th>Supplier</th></tr>"
        + "".join(rows)
        + "</table>"
        "<script>window.onload = function() { window.print(); window.close(); }</script>"
        "</body></html>"
    )


def export(products: Sequence[Product], fmt: ExportFormat | str) -> ExportArtifact | None:
    """Produce a downloadable artifact, or None when there is nothing to export."""
    fmt = ExportFormat(fmt)
    if fmt is ExportFormat.PDF:
        document = to_printable(products)
        if document is None:
            return None
        return ExportArtifact(f"{EXPORT_BASENAME}.html", "text/html", document)

    content = to_delimited(products)
    if content is None:
        return None
    media_type = "text/csv" if fmt is ExportFormat.CSV else "application/vnd.ms-excel"
    return ExportArtifact(f"{EXPORT_BASENAME}.{fmt.value}", media_type, content)
