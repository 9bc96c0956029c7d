import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog import ProductCatalog, view_record
from config import PORT, SEED_DATA, configure_logging
from database import (
    CATEGORIES, COLLECTIONS, PRODUCTS, REVIEWS, USERS, ORDERS, Store, get_store,
)
from errors import ShopError
from identity import authenticate, create_user, register_user
from inventory import InventoryStatsTracker
from orders import OrderAssembler
from reviews import ReviewBoard
from schemas import (
    ADMIN_ROLE, AdminReply, AuthResponse, Category, CategoryCreate, FavoriteChange,
    LoginRequest, Order, OrderCreate, Product, ProductCreate, ProductPatch,
    RegisterRequest, Review, ReviewCreate, StatsSummary,
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error rendering

@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def malformed_body_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": "Malformed request"})


@app.get("/")
def root():
    return {"message": "Storefront backend is running"}


@app.get("/test")
def test_store(store: Store = Depends(get_store)):
    return {
        "backend": "running",
        "store": type(store).__name__,
        "serialized_writes": store.serialize_writes,
        "collections": {name: len(store.read(name)) for name in COLLECTIONS},
    }


# Seed defaults on first start

def seed_data(store: Store):
    logger.info("Checking default collections")
    if not store.exists(USERS):
        create_user(store, "admin", "admin123", "admin@store.kz", role=ADMIN_ROLE)
    if not store.exists(CATEGORIES):
        catalog = ProductCatalog(store)
        for name in ("Electronics", "Clothing", "Books"):
            catalog.create_category(CategoryCreate(name=name))
    if not store.exists(PRODUCTS):
        catalog = ProductCatalog(store)
        catalog.create_product(ProductCreate(
            name="Smartphone", price=150000, category_id=1,
            description="A modern smartphone", image="/assets/phone.jpg",
        ))
        catalog.create_product(ProductCreate(
            name="T-shirt", price=5000, category_id=2,
            description="Cotton t-shirt", image="/assets/tshirt.jpg",
        ))
    for name in (REVIEWS, ORDERS):
        if not store.exists(name):
            store.write(name, [])


@app.on_event("startup")
async def seed_on_startup():
    if SEED_DATA:
        seed_data(get_store())


# Auth endpoints

@app.post("/api/register", response_model=AuthResponse, status_code=201)
def register(payload: RegisterRequest, store: Store = Depends(get_store)):
    return AuthResponse(user=register_user(store, payload))


@app.post("/api/login", response_model=AuthResponse)
def login(payload: LoginRequest, store: Store = Depends(get_store)):
    return AuthResponse(user=authenticate(store, payload.username, payload.password))


# Catalog endpoints

@app.get("/api/products")
def list_products(category_id: Optional[int] = Query(None, alias="categoryId"),
                  store: Store = Depends(get_store)):
    return [view_record(v) for v in ProductCatalog(store).list_products(category_id)]


@app.get("/api/products/{product_id}", response_model=Product)
def get_product(product_id: int, store: Store = Depends(get_store)):
    return ProductCatalog(store).get_product(product_id)


@app.post("/api/products", response_model=Product, status_code=201)
def create_product(payload: ProductCreate, store: Store = Depends(get_store)):
    return ProductCatalog(store).create_product(payload)


@app.put("/api/products/{product_id}", response_model=Product)
def update_product(product_id: int, patch: ProductPatch, store: Store = Depends(get_store)):
    return ProductCatalog(store).update_product(product_id, patch)


@app.delete("/api/products/{product_id}")
def delete_product(product_id: int, store: Store = Depends(get_store)):
    ProductCatalog(store).delete_product(product_id)
    return {"message": "Product deleted"}


@app.post("/api/products/{product_id}/favorite", response_model=Product)
def favorite_product(product_id: int, payload: FavoriteChange, store: Store = Depends(get_store)):
    return InventoryStatsTracker(store).adjust_favorites(product_id, payload.change)


@app.get("/api/categories", response_model=List[Category])
def list_categories(store: Store = Depends(get_store)):
    return ProductCatalog(store).categories()


@app.post("/api/categories", response_model=Category, status_code=201)
def create_category(payload: CategoryCreate, store: Store = Depends(get_store)):
    return ProductCatalog(store).create_category(payload)


@app.delete("/api/categories/{category_id}")
def delete_category(category_id: int, store: Store = Depends(get_store)):
    removed = ProductCatalog(store).delete_category(category_id)
    return {"message": "Category and its products deleted", "deletedProducts": removed}


# Order endpoints

@app.post("/api/orders", response_model=Order, status_code=201)
def create_order(payload: OrderCreate, store: Store = Depends(get_store)):
    return OrderAssembler(store).submit(payload)


@app.get("/api/orders/user", response_model=List[Order])
def user_orders(user_id: int = Query(..., alias="userId"), store: Store = Depends(get_store)):
    return OrderAssembler(store).orders_for_user(user_id)


@app.get("/api/stats", response_model=StatsSummary)
def stats(store: Store = Depends(get_store)):
    return OrderAssembler(store).summary()


# Review endpoints

@app.get("/api/reviews", response_model=List[Review])
def list_reviews(product_id: Optional[int] = Query(None, alias="productId"),
                 user_id: Optional[int] = Query(None, alias="userId"),
                 store: Store = Depends(get_store)):
    return ReviewBoard(store).list_reviews(product_id, user_id)


@app.post("/api/reviews", response_model=Review, status_code=201)
def create_review(payload: ReviewCreate, store: Store = Depends(get_store)):
    return ReviewBoard(store).submit(payload)


@app.put("/api/reviews/{review_id}", response_model=Review)
def reply_to_review(review_id: int, payload: AdminReply, store: Store = Depends(get_store)):
    return ReviewBoard(store).attach_admin_reply(review_id, payload.admin_reply)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
