import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from auth import Identity, IdentityService
from config import Settings
from database import init_db, make_engine
from errors import AuthError, ConflictError, ShopError, ValidationError
from schemas import AuthResponse, LoginInput, OrderCreated, OrderInput, OrderWithItems, Product, RegisterInput, User
from stores import CatalogStore, IdentityStore, OrderStore

logger = logging.getLogger(__name__)


# Dependencies

def get_identity_service(request: Request) -> IdentityService:
    return request.app.state.identity_service


def get_catalog(request: Request) -> CatalogStore:
    return request.app.state.catalog


def get_identity_store(request: Request) -> IdentityStore:
    return request.app.state.identity_store


def get_order_store(request: Request) -> OrderStore:
    return request.app.state.order_store


def get_current_identity(
    authorization: Optional[str] = Header(default=None),
    identity_service: IdentityService = Depends(get_identity_service),
) -> Identity:
    return identity_service.identity_from_header(authorization)


# Error handlers

def handle_shop_error(request: Request, exc: ShopError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def handle_request_validation_error(request: Request, exc: RequestValidationError):
    fields = []
    for err in exc.errors():
        if err.get("type") == "json_invalid":
            return JSONResponse(status_code=400, content={"error": "Malformed JSON body"})
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    return JSONResponse(status_code=400, content={"error": "Missing or invalid fields: " + ", ".join(fields)})


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Build the API around ``engine`` (or one made from ``settings``).

    Called with no arguments it reads the environment, so it doubles as the
    ASGI entry point: ``uvicorn main:create_app --factory``.
    """
    settings = settings or Settings.from_env()
    if engine is None:
        engine = make_engine(settings.database_url, settings.db_timeout)
        init_db(engine, seed=settings.seed_products)

    app = FastAPI(title="Clothing Store API")
    app.state.engine = engine
    app.state.identity_service = IdentityService(settings)
    app.state.catalog = CatalogStore(engine)
    app.state.identity_store = IdentityStore(engine)
    app.state.order_store = OrderStore(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ShopError, handle_shop_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    @app.get("/")
    def read_root():
        return {"message": "Clothing Store API"}

    @app.get("/test")
    def test_database():
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_url": "✅ Set" if settings.database_url else "❌ Not Set",
            "connection_status": "Not Connected",
            "tables": [],
        }
        try:
            response["tables"] = sorted(inspect(engine).get_table_names())
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
        except Exception as e:
            response["database"] = f"❌ Error: {str(e)[:80]}"
        return response

    # Catalog
    @app.get("/api/products", response_model=List[Product])
    def list_products(catalog: CatalogStore = Depends(get_catalog)):
        return catalog.list_products()

    # Auth
    @app.post("/api/auth/register", response_model=AuthResponse, status_code=201)
    def register(
        payload: RegisterInput,
        store: IdentityStore = Depends(get_identity_store),
        identity_service: IdentityService = Depends(get_identity_service),
    ):
        if store.find_by_email(payload.email):
            raise ConflictError("User with this email already exists")
        user = store.create(payload.name, payload.email, identity_service.hash_password(payload.password))
        logger.info("Registered user %s", user.id)
        return AuthResponse(token=identity_service.create_access_token(user), user=user)

    @app.post("/api/auth/login", response_model=AuthResponse)
    def login(
        payload: LoginInput,
        store: IdentityStore = Depends(get_identity_store),
        identity_service: IdentityService = Depends(get_identity_service),
    ):
        record = store.find_by_email(payload.email)
        if not record or not identity_service.verify_password(payload.password, record.password_hash):
            logger.warning("Failed login attempt")
            raise AuthError("Invalid email or password")
        user = User(id=record.id, name=record.name, email=record.email)
        return AuthResponse(token=identity_service.create_access_token(user), user=user)

    @app.get("/api/auth/me", response_model=User)
    def me(identity: Identity = Depends(get_current_identity)):
        return User(id=identity.id, name=identity.name, email=identity.email)

    # Orders
    @app.post("/api/orders", response_model=OrderCreated, status_code=201)
    def create_order(
        payload: OrderInput,
        identity: Identity = Depends(get_current_identity),
        catalog: CatalogStore = Depends(get_catalog),
        store: OrderStore = Depends(get_order_store),
    ):
        requested = {item.product_id for item in payload.items}
        unknown = requested - catalog.existing_ids(requested)
        if unknown:
            raise ValidationError("Unknown product ids: " + ", ".join(str(i) for i in sorted(unknown)))
        order_id = store.create_order(
            customer_name=payload.customer_name,
            email=identity.email,
            address=payload.address,
            items=payload.items,
        )
        return OrderCreated(order_id=order_id)

    @app.get("/api/orders/my", response_model=List[OrderWithItems])
    def my_orders(
        identity: Identity = Depends(get_current_identity),
        store: OrderStore = Depends(get_order_store),
    ):
        return store.orders_for_email(identity.email)

    return app


if __name__ == "__main__":
    import uvicorn
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
