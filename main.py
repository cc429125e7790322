import logging
import os
from typing import Any, Dict, List, Optional

from bson.errors import InvalidId
from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import connect, describe_store, get_db
from mappers import CategoryMapper, DocumentMapper, OrderMapper, ProductMapper, RecordWriteError, UserMapper
from schemas import (
    Category,
    CategoryUpdate,
    LoginRequest,
    Order,
    OrderUpdate,
    Product,
    ProductUpdate,
    User,
    UserUpdate,
    changes_from,
    format_errors,
    format_validation_error,
    normalize_email,
    validate,
)
from security import verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"

router = APIRouter()


# Mapper dependencies
def get_products(db: Database = Depends(get_db)) -> ProductMapper:
    return ProductMapper(db)


def get_categories(db: Database = Depends(get_db)) -> CategoryMapper:
    return CategoryMapper(db)


def get_orders(db: Database = Depends(get_db)) -> OrderMapper:
    return OrderMapper(db)


def get_users(db: Database = Depends(get_db)) -> UserMapper:
    return UserMapper(db)


# Utils
def require_body(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not payload:
        raise HTTPException(status_code=400, detail="Request body cannot be empty")
    return payload


def fetch_one(mapper: DocumentMapper, record_id: str, label: str) -> Dict[str, Any]:
    doc = mapper.get(record_id)
    if doc is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return doc


def apply_update(mapper: DocumentMapper, record_id: str, changes: Dict[str, Any], label: str) -> Dict[str, Any]:
    if not changes:
        raise HTTPException(status_code=400, detail="No updates provided")
    updated = mapper.update(record_id, changes)
    if updated is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return updated


def remove(mapper: DocumentMapper, record_id: str, label: str) -> Dict[str, str]:
    # Success framing does not depend on whether anything was deleted
    deleted = mapper.delete(record_id)
    logger.debug("Deleted %d %s document(s) for id %s", deleted, mapper.collection_name, record_id)
    return {"message": f"{label} deleted successfully."}


# Routes
@router.get("/", response_class=PlainTextResponse)
def root():
    return "Welcome to the ARO Bazzar Backend API!"


@router.get("/healthz", response_class=PlainTextResponse)
def healthz():
    return "OK"


@router.get("/test")
def test_database(request: Request):
    return describe_store(request.app.state.db)


# Products
@router.get("/api/products")
def list_products(products: ProductMapper = Depends(get_products)) -> List[dict]:
    return products.list_all()


@router.get("/api/products/{product_id}")
def get_product(product_id: str, products: ProductMapper = Depends(get_products)):
    return fetch_one(products, product_id, "Product")


@router.post("/api/products", status_code=201)
def create_product(payload: Optional[Dict[str, Any]] = Body(None), products: ProductMapper = Depends(get_products)):
    product = validate(Product, require_body(payload))
    return products.create(product)


@router.put("/api/products/{product_id}")
def update_product(
    product_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    products: ProductMapper = Depends(get_products),
):
    changes = changes_from(validate(ProductUpdate, require_body(payload)))
    return apply_update(products, product_id, changes, "Product")


@router.delete("/api/products/{product_id}")
def delete_product(product_id: str, products: ProductMapper = Depends(get_products)):
    return remove(products, product_id, "Product")


# Categories
@router.get("/api/categories")
def list_categories(categories: CategoryMapper = Depends(get_categories)) -> List[dict]:
    return categories.list_all()


@router.get("/api/categories/{category_id}")
def get_category(category_id: str, categories: CategoryMapper = Depends(get_categories)):
    return fetch_one(categories, category_id, "Category")


@router.post("/api/categories", status_code=201)
def create_category(
    payload: Optional[Dict[str, Any]] = Body(None),
    categories: CategoryMapper = Depends(get_categories),
):
    category = validate(Category, require_body(payload))
    return categories.create(category)


@router.put("/api/categories/{category_id}")
def update_category(
    category_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    categories: CategoryMapper = Depends(get_categories),
):
    changes = changes_from(validate(CategoryUpdate, require_body(payload)))
    return apply_update(categories, category_id, changes, "Category")


@router.delete("/api/categories/{category_id}")
def delete_category(category_id: str, categories: CategoryMapper = Depends(get_categories)):
    return remove(categories, category_id, "Category")


# Orders
@router.get("/api/orders")
def list_orders(orders: OrderMapper = Depends(get_orders)) -> List[dict]:
    return orders.list_all()


@router.get("/api/orders/{order_id}")
def get_order(order_id: str, orders: OrderMapper = Depends(get_orders)):
    return fetch_one(orders, order_id, "Order")


@router.post("/api/orders", status_code=201)
def create_order(payload: Optional[Dict[str, Any]] = Body(None), orders: OrderMapper = Depends(get_orders)):
    order = validate(Order, require_body(payload))
    return orders.create(order)


@router.put("/api/orders/{order_id}")
def update_order(
    order_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    orders: OrderMapper = Depends(get_orders),
):
    # Status may move between any two values; there is no transition table
    changes = changes_from(validate(OrderUpdate, require_body(payload)))
    return apply_update(orders, order_id, changes, "Order")


@router.delete("/api/orders/{order_id}")
def delete_order(order_id: str, orders: OrderMapper = Depends(get_orders)):
    return remove(orders, order_id, "Order")


# Users
@router.get("/api/users")
def list_users(users: UserMapper = Depends(get_users)) -> List[dict]:
    return users.list_all()


@router.get("/api/users/{user_id}")
def get_user(user_id: str, users: UserMapper = Depends(get_users)):
    return fetch_one(users, user_id, "User")


@router.post("/api/users", status_code=201)
def create_user(payload: Optional[Dict[str, Any]] = Body(None), users: UserMapper = Depends(get_users)):
    user = validate(User, require_body(payload))
    return users.create(user)


@router.put("/api/users/{user_id}")
def update_user(
    user_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    users: UserMapper = Depends(get_users),
):
    changes = changes_from(validate(UserUpdate, require_body(payload)))
    return apply_update(users, user_id, changes, "User")


@router.delete("/api/users/{user_id}")
def delete_user(user_id: str, users: UserMapper = Depends(get_users)):
    return remove(users, user_id, "User")


# Auth
@router.post("/api/login")
def login(req: LoginRequest, users: UserMapper = Depends(get_users)):
    email = normalize_email(req.email)
    user = users.find_by_email(email) if email else None
    if not user or not verify_password(req.password, user.get("password", "")):
        raise HTTPException(status_code=400, detail=INVALID_CREDENTIALS)
    return {
        "message": "Login successful",
        "user": {"id": str(user["_id"]), "name": user["name"], "email": user["email"], "role": user.get("role", "Editor")},
    }


# Error responses
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=getattr(exc, "headers", None))


async def request_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": format_errors("Request", exc.errors())})


async def schema_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"message": format_validation_error(exc)})


async def client_store_error(request: Request, exc: Exception):
    return JSONResponse(status_code=400, content={"message": str(exc)})


async def server_store_error(request: Request, exc: PyMongoError):
    logger.error("Store error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": str(exc)})


async def unexpected_error(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": str(exc)})


def create_app(store: Optional[Database] = None) -> FastAPI:
    """Build the API around a store handle.

    With no handle, the app connects from the environment at startup and keeps
    serving liveness routes even if that fails.
    """
    app = FastAPI(title="ARO Bazzar API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db = store
    app.state.indexed = False

    @app.on_event("startup")
    def connect_store():
        if app.state.db is None:
            app.state.db = connect()

    app.add_exception_handler(StarletteHTTPException, http_error)
    app.add_exception_handler(RequestValidationError, request_validation_error)
    app.add_exception_handler(ValidationError, schema_validation_error)
    app.add_exception_handler(DuplicateKeyError, client_store_error)
    app.add_exception_handler(InvalidId, client_store_error)
    app.add_exception_handler(RecordWriteError, client_store_error)
    app.add_exception_handler(PyMongoError, server_store_error)
    app.add_exception_handler(Exception, unexpected_error)

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
