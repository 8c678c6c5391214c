"""Server-rendered pages for the storefront.

Pages are plain HTML strings built from the same listing resolver and
cart join the JSON API uses. All interpolated values go through
``html.escape``.
"""

import html
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pymongo.errors import PyMongoError

from carts import CartService
from catalog import CatalogStore
from deps import get_cart_service, get_catalog
from errors import InvalidIdError, ShopError
from listing import build_links, resolve_listing

logger = logging.getLogger(__name__)

router = APIRouter()


def _e(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def render_page(title: str, body: str, scripts: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{_e(title)}</title>
</head>
<body>
    <nav><a href="/products">Products</a> | <a href="/realtimeproducts">Realtime</a></nav>
    <main>
{body}
    </main>
{scripts}
</body>
</html>
"""


def error_page(status_code: int, title: str, message: str) -> HTMLResponse:
    body = f'<h1>{_e(title)}</h1>\n<p class="error">{_e(message)}</p>'
    return HTMLResponse(render_page(title, body), status_code=status_code)


def _shop_error_page(exc: ShopError, title: str) -> HTMLResponse:
    if isinstance(exc, InvalidIdError):
        title = "Invalid ID"
    return error_page(exc.status_code, title, exc.message)


def render_product_card(product: Dict[str, Any]) -> str:
    availability = "Available" if product["status"] else "Unavailable"
    return (
        f'<li class="product" data-id="{_e(product["id"])}">'
        f'<a href="/products/{_e(product["id"])}">{_e(product["title"])}</a> '
        f'<span class="category">{_e(product["category"])}</span> '
        f'<span class="price">${product["price"]:.2f}</span> '
        f'<span class="status">{availability}</span></li>'
    )


def render_product_list(products: List[Dict[str, Any]]) -> str:
    if not products:
        return '<p class="empty">No products found.</p>'
    cards = "\n".join(render_product_card(p) for p in products)
    return f'<ul class="products">\n{cards}\n</ul>'


def _option(value: str, label: str, current: Optional[str]) -> str:
    selected = " selected" if (current or "") == value else ""
    return f'<option value="{_e(value)}"{selected}>{_e(label)}</option>'


def render_filters(categories: List[str], listing) -> str:
    category_options = [_option("", "All categories", listing.category)]
    category_options += [_option(c, c, listing.category) for c in categories]
    sort_options = [
        _option("", "No sorting", listing.sort),
        _option("asc", "Price: low to high", listing.sort),
        _option("desc", "Price: high to low", listing.sort),
    ]
    status_options = [
        _option("", "Any availability", listing.status),
        _option("true", "Available", listing.status),
        _option("false", "Unavailable", listing.status),
    ]
    return f"""<form method="get" action="/products" class="filters">
    <input type="text" name="query" value="{_e(listing.query)}" placeholder="Category or availability" />
    <select name="category">{"".join(category_options)}</select>
    <select name="sort">{"".join(sort_options)}</select>
    <select name="status">{"".join(status_options)}</select>
    <input type="hidden" name="limit" value="{listing.limit}" />
    <button type="submit">Filter</button>
</form>"""


@router.get("/", include_in_schema=False)
def index():
    return RedirectResponse("/products")


@router.get("/products", response_class=HTMLResponse)
def products_page(request: Request, catalog: CatalogStore = Depends(get_catalog)):
    # Blank form fields mean "not filtered"
    params = {k: v for k, v in request.query_params.items() if v != ""}
    listing = resolve_listing(params)
    try:
        result = catalog.query(listing)
        categories = catalog.categories()
    except PyMongoError:
        logger.exception("Loading the products page failed")
        return error_page(500, "Error", "Error loading products")
    links = build_links(listing, result, "/products")

    nav = []
    if links.prev_link:
        nav.append(f'<a class="prev" href="{_e(links.prev_link)}">Previous</a>')
    nav.append(f'<span class="page">Page {result.page} of {result.total_pages}</span>')
    if links.next_link:
        nav.append(f'<a class="next" href="{_e(links.next_link)}">Next</a>')

    body = "\n".join([
        "<h1>Products</h1>",
        render_filters(categories, listing),
        render_product_list(result.items),
        f'<div class="pagination">{" ".join(nav)}</div>',
    ])
    return render_page("Products", body)


@router.get("/products/{product_id}", response_class=HTMLResponse)
def product_detail_page(product_id: str, catalog: CatalogStore = Depends(get_catalog)):
    try:
        product = catalog.find_by_id(product_id)
    except ShopError as exc:
        return _shop_error_page(exc, "Product")
    if product is None:
        return error_page(404, "Product not found", f"Product with ID {product_id} does not exist")

    thumbnails = "".join(f"<li>{_e(t)}</li>" for t in product["thumbnails"])
    body = f"""<h1>{_e(product["title"])}</h1>
<p class="description">{_e(product["description"])}</p>
<dl>
    <dt>Code</dt><dd>{_e(product["code"])}</dd>
    <dt>Category</dt><dd>{_e(product["category"])}</dd>
    <dt>Price</dt><dd class="price">${product["price"]:.2f}</dd>
    <dt>Stock</dt><dd>{product["stock"]}</dd>
    <dt>Status</dt><dd>{"Available" if product["status"] else "Unavailable"}</dd>
</dl>
<ul class="thumbnails">{thumbnails}</ul>"""
    return render_page(product["title"], body)


@router.get("/carts/{cart_id}", response_class=HTMLResponse)
def cart_page(cart_id: str, service: CartService = Depends(get_cart_service)):
    try:
        cart = service.get_with_details(cart_id)
    except ShopError as exc:
        return _shop_error_page(exc, "Cart not found")

    if cart["products"]:
        rows = "\n".join(
            f'<tr><td>{_e(line["product"]["title"])}</td>'
            f'<td>${line["product"]["price"]:.2f}</td>'
            f'<td>{line["quantity"]}</td>'
            f'<td class="subtotal">${line["subtotal"]:.2f}</td></tr>'
            for line in cart["products"]
        )
        content = f"""<table class="cart">
<thead><tr><th>Product</th><th>Price</th><th>Quantity</th><th>Subtotal</th></tr></thead>
<tbody>
{rows}
</tbody>
</table>
<p class="total">Total: ${cart["total"]:.2f}</p>"""
    else:
        content = '<p class="empty">The cart is empty.</p>'
    body = f'<h1>Cart</h1>\n<p class="cart-id">{_e(cart["id"])}</p>\n{content}'
    return render_page("Cart", body)


REALTIME_SCRIPT = """<script>
(function () {
    var scheme = location.protocol === "https:" ? "wss://" : "ws://";
    var socket = new WebSocket(scheme + location.host + "/ws/products");
    var list = document.getElementById("products");
    var notice = document.getElementById("notice");

    function render(products) {
        list.innerHTML = "";
        products.forEach(function (p) {
            var item = document.createElement("li");
            item.textContent = p.title + " - $" + Number(p.price).toFixed(2) + " (" + p.code + ") ";
            var remove = document.createElement("button");
            remove.textContent = "Delete";
            remove.onclick = function () {
                socket.send(JSON.stringify({event: "deleteProduct", data: p.id}));
            };
            item.appendChild(remove);
            list.appendChild(item);
        });
    }

    socket.onmessage = function (message) {
        var frame = JSON.parse(message.data);
        if (frame.event === "products") {
            render(frame.data);
        } else {
            notice.textContent = frame.data.message;
        }
    };

    document.getElementById("add-product").onsubmit = function (event) {
        event.preventDefault();
        var form = event.target;
        socket.send(JSON.stringify({event: "addProduct", data: {
            title: form.title.value,
            description: form.description.value,
            code: form.code.value,
            price: Number(form.price.value),
            stock: parseInt(form.stock.value, 10),
            category: form.category.value
        }}));
        form.reset();
    };
})();
</script>"""


@router.get("/realtimeproducts", response_class=HTMLResponse)
def realtime_products_page(catalog: CatalogStore = Depends(get_catalog)):
    products = catalog.list_all()
    cards = "\n".join(
        f'<li data-id="{_e(p["id"])}">{_e(p["title"])} - ${p["price"]:.2f} ({_e(p["code"])})</li>'
        for p in products
    )
    body = f"""<h1>Realtime products</h1>
<p id="notice"></p>
<form id="add-product">
    <input name="title" placeholder="Title" required />
    <input name="description" placeholder="Description" required />
    <input name="code" placeholder="Code" required />
    <input name="price" type="number" step="0.01" min="0" placeholder="Price" required />
    <input name="stock" type="number" min="0" placeholder="Stock" required />
    <input name="category" placeholder="Category" required />
    <button type="submit">Add</button>
</form>
<ul id="products">
{cards}
</ul>"""
    return render_page("Realtime products", body, REALTIME_SCRIPT)
