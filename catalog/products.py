# catalog/products.py
import functools
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError

from .auth import AuthorizationGate, get_authorization_gate, get_identity_token
from .errors import CatalogError, Conflict, NotFound, Unauthorized, ValidationFailure
from .schemas import PRODUCT_FIELDS, ProductCreate, ProductOut, ProductUpdate
from .store import ProductStore, SortOrder, get_product_store
from .views import RenderableResult, ViewRenderer, get_renderer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


def product_data(product) -> dict:
    return ProductOut.model_validate(product).model_dump(by_alias=True)


def error_result(error: CatalogError) -> RenderableResult:
    data = {"message": error.message}
    if isinstance(error, ValidationFailure) and error.errors:
        data["errors"] = error.errors
    return RenderableResult(error.status_code, error.template, data)


def renders_errors(method):
    """Convert any CatalogError raised by a handler method into its result."""
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except CatalogError as error:
            return error_result(error)
    return wrapper


def parse_payload(model, payload, template: str):
    if payload is None:
        raise ValidationFailure("Malformed request body", template=template)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise ValidationFailure(template=template, errors=errors) from exc


class ProductRequestHandler:
    """Request handling for the product resource.

    Every method returns a RenderableResult; errors never escape as
    exceptions except unexpected persistence faults, which are left to the
    application's error handler.
    """

    def __init__(self, store: ProductStore, gate: AuthorizationGate, token: dict):
        self.store = store
        self.gate = gate
        self.token = token or {}

    async def _authorize(self):
        if not await self.gate.allows(self.token):
            logger.info("Denied product modification for userId=%r", self.token.get("userId"))
            raise Unauthorized()

    async def get_all(self) -> RenderableResult:
        products = await self.store.all()
        return RenderableResult(
            status.HTTP_200_OK, "products.html", {"products": [product_data(p) for p in products]}
        )

    @renders_errors
    async def get_by_category(self, category: Optional[str] = None, order: Optional[str] = None) -> RenderableResult:
        category = category or None
        order = order or None
        if category is None and order is None:
            raise NotFound(template="error_not_found.html")

        sort = SortOrder.parse(order) if order is not None else None
        # without a category the whole catalog is sorted
        products = await self.store.by_category(category, sort)
        return RenderableResult(
            status.HTTP_200_OK, "products.html", {"products": [product_data(p) for p in products]}
        )

    @renders_errors
    async def create(self, payload: Optional[dict]) -> RenderableResult:
        await self._authorize()
        fields = parse_payload(ProductCreate, payload, "products/error_create_product.html").model_dump()

        if await self.store.get_by_name(fields["name"]) is not None:
            logger.info("Product %r already exists", fields["name"])
            raise Conflict()

        product = await self.store.insert(**fields)
        logger.info("Created product %s (%r)", product.id, product.name)
        return RenderableResult(
            status.HTTP_200_OK,
            "products/create_product_successfully.html",
            {"message": "Product created successfully", "product": product_data(product)},
        )

    @renders_errors
    async def update(self, product_id: int, payload: Optional[dict]) -> RenderableResult:
        await self._authorize()
        product = await self.store.get(product_id)
        if product is None:
            raise NotFound()

        changes = parse_payload(ProductUpdate, payload, "products/error_update_product.html").changes()
        merged = {name: changes.get(name, getattr(product, name)) for name in PRODUCT_FIELDS}
        await self.store.update(product_id, **merged)

        product = await self.store.get(product_id)
        if product is None:
            # deleted between the update and the read back
            raise NotFound()
        logger.info("Updated product %s, changed fields: %s", product_id, sorted(changes))
        return RenderableResult(
            status.HTTP_200_OK,
            "products/update_product_success.html",
            {"message": "Product updated successfully", "product": product_data(product)},
        )

    @renders_errors
    async def delete(self, product_id: int) -> RenderableResult:
        await self._authorize()
        if await self.store.get(product_id) is None:
            raise NotFound("Error: Product not found", template="products/error_product_not_found.html")

        await self.store.delete(product_id)
        logger.info("Deleted product %s", product_id)
        return RenderableResult(
            status.HTTP_200_OK,
            "products/delete_product_success.html",
            {"message": "Product deleted successfully"},
        )


async def read_payload(request: Request) -> Optional[dict]:
    """Parse a JSON or form body into a dict; None when it is malformed."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return {key: value for key, value in form.items()}

    body = await request.body()
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


async def get_handler(
    store: ProductStore = Depends(get_product_store),
    gate: AuthorizationGate = Depends(get_authorization_gate),
    token: dict = Depends(get_identity_token),
) -> ProductRequestHandler:
    return ProductRequestHandler(store, gate, token)


@router.get("")
async def list_products(
    request: Request,
    handler: ProductRequestHandler = Depends(get_handler),
    renderer: ViewRenderer = Depends(get_renderer),
):
    return renderer.render(request, await handler.get_all())


@router.get("/filter")
async def filter_products(
    request: Request,
    category: Optional[str] = None,
    order: Optional[str] = None,
    handler: ProductRequestHandler = Depends(get_handler),
    renderer: ViewRenderer = Depends(get_renderer),
):
    return renderer.render(request, await handler.get_by_category(category, order))


@router.post("")
async def create_product(
    request: Request,
    handler: ProductRequestHandler = Depends(get_handler),
    renderer: ViewRenderer = Depends(get_renderer),
):
    return renderer.render(request, await handler.create(await read_payload(request)))


@router.api_route("/{product_id}", methods=["PUT", "PATCH"])
async def update_product(
    product_id: int,
    request: Request,
    handler: ProductRequestHandler = Depends(get_handler),
    renderer: ViewRenderer = Depends(get_renderer),
):
    return renderer.render(request, await handler.update(product_id, await read_payload(request)))


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    request: Request,
    handler: ProductRequestHandler = Depends(get_handler),
    renderer: ViewRenderer = Depends(get_renderer),
):
    return renderer.render(request, await handler.delete(product_id))
