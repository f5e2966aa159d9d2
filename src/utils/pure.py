from typing import List, Literal, Optional

from ordering.cart import Cart
from ordering.catalog import CatalogSnapshot
from ordering.pricing import format_price, line_total


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [list(map(str, row)) for row in rows]

    if aligns is None:
        aligns = ["c"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def cart_summary_rows(cart: Cart, catalog: CatalogSnapshot) -> List[List[str]]:
    """
    One row per cart line: name, unit price, quantity, line total.

    Items missing from the catalog keep their id as name and count as free,
    the same way the price calculator treats them.
    """
    rows = []
    for item_id, qty in cart.products.items():
        product = catalog.product(item_id)
        rows.append(_row(product.name if product else item_id, product.price if product else None, qty))
    for item_id, qty in cart.options.items():
        option = catalog.option(item_id)
        rows.append(_row(option.name if option else item_id, option.price if option else None, qty))
    return rows


def _row(name, unit_price, qty) -> List[str]:
    if unit_price is None:
        return [name, "-", str(qty), "-"]
    return [name, format_price(unit_price), str(qty), format_price(line_total(qty, unit_price))]
