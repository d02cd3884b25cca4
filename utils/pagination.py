from flask import current_app


def page_params(args) -> tuple[int, int]:
    """Read ``page``/``limit`` from a query-string mapping, clamped to config."""
    default = current_app.config["DEFAULT_PAGE_SIZE"]
    maximum = current_app.config["MAX_PAGE_SIZE"]

    page = args.get("page", 1, type=int) or 1
    limit = args.get("limit", default, type=int) or default

    return max(page, 1), min(max(limit, 1), maximum)


def pagination_dict(result, page: int, limit: int) -> dict:
    return {
        "total": result.total,
        "page": page,
        "limit": limit,
        "totalPages": result.pages,
    }
