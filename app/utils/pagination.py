"""Helpers for handling paginated views."""

from __future__ import annotations

from typing import Dict, List, Union

from flask import request

ELLIPSIS = "..."


def get_page(param: str = "page") -> int:
    """Return a validated 1-based page number from the query string."""

    value = request.args.get(param, type=int)
    if value is None or value < 1:
        return 1
    return value


def page_window(current_page: int, total_pages: int) -> List[Union[int, str]]:
    """Return the page numbers to show in a pagination bar.

    At most seven entries are produced; gaps are marked with
    :data:`ELLIPSIS`.

    Parameters
    ----------
    current_page:
        The page being displayed.
    total_pages:
        Number of pages available.

    Returns
    -------
    list
        Page numbers and ellipsis markers in display order.
    """

    if total_pages <= 7:
        return list(range(1, total_pages + 1))
    if current_page <= 3:
        return [1, 2, 3, ELLIPSIS, total_pages - 1, total_pages]
    if current_page >= total_pages - 2:
        return [1, 2, ELLIPSIS, total_pages - 2, total_pages - 1, total_pages]
    return [
        1,
        ELLIPSIS,
        current_page - 1,
        current_page,
        current_page + 1,
        ELLIPSIS,
        total_pages,
    ]


def build_pagination_args(*, page_param: str = "page") -> Dict[str, Union[str, List[str]]]:
    """Assemble arguments for pagination links.

    Every query parameter except ``page_param`` is carried over so that the
    search term survives page changes.
    """

    args: Dict[str, Union[str, List[str]]] = {}
    for key, values in request.args.lists():
        if key == page_param:
            continue
        if not values:
            continue
        if len(values) == 1:
            args[key] = values[0]
        else:
            args[key] = values
    return args
