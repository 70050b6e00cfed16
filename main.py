import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse
from pymongo.errors import PyMongoError

import database
from auth import require_admin
from config import Settings, get_settings, settings
from notifications import mailer_from_settings, notify_admin_of_order
from order_codes import OrderCodeExhausted, is_order_code
from orders import EmptyCartError, create_order
from schemas import DashboardStats, OrderCreate, StatusUpdate
from stats import build_dashboard_stats
from store import MongoOrderStore

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("orders_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        try:
            database.init_database(database.db)
        except PyMongoError:
            # without the unique order_id index duplicate order codes would commit
            logger.exception("Database initialization failed, refusing to start")
            raise
    else:
        logger.warning("DATABASE_URL / DATABASE_NAME not set, API routes will answer 503")
    yield


app = FastAPI(title="Storefront Orders API", lifespan=lifespan)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----- Utilities -----

def to_str_id(doc: dict) -> dict:
    if not doc:
        return doc
    d = dict(doc)
    if d.get("_id") is not None:
        d["id"] = str(d.pop("_id"))
    return d


def get_store() -> MongoOrderStore:
    if database.db is None:
        raise HTTPException(status_code=503, detail="Service Unavailable")
    return MongoOrderStore(database.db)


def get_mailer(app_settings: Settings = Depends(get_settings)):
    return mailer_from_settings(app_settings)


def server_error(message: str) -> HTTPException:
    logger.exception(message)
    return HTTPException(status_code=500, detail="Server Error")


def frontend_index() -> Optional[Path]:
    if not settings.frontend_dist:
        return None
    index = Path(settings.frontend_dist) / "index.html"
    return index if index.is_file() else None


# ----- Health -----
@app.get("/")
def read_root():
    index = frontend_index()
    if index is not None:
        return FileResponse(index)
    return {"message": "Storefront Orders API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    db = database.db
    if db is not None:
        response["database"] = "✅ Available"
        response["database_name"] = db.name
        response["connection_status"] = "Connected"
        try:
            response["collections"] = db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
        except PyMongoError as e:
            response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    else:
        response["database"] = "⚠️ Available but not initialized"
    response["database_url"] = "✅ Set" if settings.database_url else "❌ Not Set"
    response["database_name"] = "✅ Set" if settings.database_name else "❌ Not Set"
    return response


# ----- Orders -----
@app.get("/api/orders/stats", response_model=DashboardStats, dependencies=[Depends(require_admin)])
def order_stats(store=Depends(get_store), app_settings: Settings = Depends(get_settings)):
    try:
        return build_dashboard_stats(store, app_settings.stats)
    except PyMongoError:
        raise server_error("Dashboard stats query failed")


@app.get("/api/orders", dependencies=[Depends(require_admin)])
def list_orders(store=Depends(get_store)):
    try:
        return [to_str_id(d) for d in store.list_orders()]
    except PyMongoError:
        raise server_error("Listing orders failed")


@app.get("/api/orders/{order_id}")
def get_order(order_id: str, store=Depends(get_store)):
    try:
        if is_order_code(order_id):
            doc = store.find_by_code(order_id)
        else:
            doc = store.find_by_id(order_id)
    except PyMongoError:
        raise server_error(f"Looking up order {order_id} failed")
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    return to_str_id(doc)


@app.post("/api/orders", status_code=201)
def place_order(
    payload: OrderCreate,
    background_tasks: BackgroundTasks,
    store=Depends(get_store),
    mailer=Depends(get_mailer),
    app_settings: Settings = Depends(get_settings),
):
    try:
        stored = create_order(store, payload, max_attempts=app_settings.order_code_max_attempts)
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (PyMongoError, OrderCodeExhausted):
        raise server_error("Creating order failed")

    background_tasks.add_task(notify_admin_of_order, stored, app_settings, store=store, mailer=mailer)
    return to_str_id(stored)


@app.put("/api/orders/{order_id}/status", dependencies=[Depends(require_admin)])
def update_order_status(order_id: str, update: StatusUpdate, store=Depends(get_store)):
    try:
        doc = store.update_status(order_id, update.status)
    except PyMongoError:
        raise server_error(f"Updating status of order {order_id} failed")
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s status set to %s", doc.get("order_id"), update.status)
    return to_str_id(doc)


@app.delete("/api/orders/{order_id}", dependencies=[Depends(require_admin)])
def delete_order(order_id: str, store=Depends(get_store)):
    try:
        deleted = store.delete_order(order_id)
    except PyMongoError:
        raise server_error(f"Deleting order {order_id} failed")
    if not deleted:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s removed", order_id)
    return {"message": "Order removed"}


# ----- Frontend -----
def resolve_frontend_file(dist: Path, full_path: str) -> Path:
    """File under `dist` for a request path, or index.html for anything else."""
    dist = dist.resolve()
    candidate = (dist / full_path).resolve()
    if candidate.is_file() and dist in candidate.parents:
        return candidate
    return dist / "index.html"


def mount_frontend(target: FastAPI, dist: Path) -> None:
    @target.get("/{full_path:path}", include_in_schema=False)
    def serve_frontend(full_path: str):
        if full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")
        return FileResponse(resolve_frontend_file(dist, full_path))


if frontend_index() is not None:
    mount_frontend(app, Path(settings.frontend_dist))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
