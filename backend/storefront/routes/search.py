# Overview: Flask API routes for catalog search; parses input and returns JSON responses.

"""
Catalog search routes.

MULTI-TENANT: The visible shops come from the scope query arg:
- global (default): every shop, reviewed universal listings only
- single-shop: the shop named by ?shop= (or the default shop)
- callers-shops: shops the caller (X-User-Id) is a member of
A shop slug on the request always narrows the search to that one shop.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import with_caller
from ..services import search_service
from ..validation import ValidationError, parse_flag, parse_limit, parse_pagination

search_bp = Blueprint("search", __name__, url_prefix="/api/search")


@search_bp.get("")
@with_caller
def search_route():
    """
    Paginated catalog search.

    Query params:
    - q: str - free text (empty text returns no items)
    - scope: global | single-shop | callers-shops
    - page: int (default 1)
    - per_page: int (default 20, max 50)
    - category_id: int (optional)
    - include_subcategories: bool (optional) - also match descendant categories
    - shop: str (optional) - shop slug
    """
    try:
        pagination = parse_pagination(
            request.args.get("page"),
            request.args.get("per_page"),
            default_per_page=current_app.config["SEARCH_DEFAULT_PER_PAGE"],
            max_per_page=current_app.config["SEARCH_MAX_PER_PAGE"],
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = search_service.catalog_search(
            text=request.args.get("q", ""),
            limit=pagination.per_page,
            offset=pagination.offset,
            scope_token=request.args.get("scope"),
            caller_id=g.caller_id,
            shop_slug=g.shop_slug,
            category_id=request.args.get("category_id"),
            include_subcategories=parse_flag(request.args.get("include_subcategories")),
        )
    except Exception:
        current_app.logger.exception("Failed to search catalog")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "page": pagination.page,
        "per_page": pagination.per_page,
        "total": result["total"],
        "items": result["items"],
    })


@search_bp.get("/suggest")
@with_caller
def suggest_route():
    """
    Type-ahead suggestions: first page only, compact items.

    Query params: q, scope, limit (default 8, max 12), category_id, shop
    """
    try:
        limit = parse_limit(
            request.args.get("limit"),
            default=current_app.config["SUGGEST_DEFAULT_LIMIT"],
            maximum=current_app.config["SUGGEST_MAX_LIMIT"],
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = search_service.catalog_search(
            text=request.args.get("q", ""),
            limit=limit,
            offset=0,
            scope_token=request.args.get("scope"),
            caller_id=g.caller_id,
            shop_slug=g.shop_slug,
            category_id=request.args.get("category_id"),
        )
    except Exception:
        current_app.logger.exception("Failed to load search suggestions")
        return jsonify({"error": "Internal server error"}), 500

    items = [
        {
            "id": item["id"],
            "title": item["title"],
            "photo_url": item["photo_url"],
            "price_cents": item["price_cents"],
            "currency": item["currency"],
            "tenant": item["tenant"],
        }
        for item in result["items"]
    ]
    return jsonify({"items": items})
