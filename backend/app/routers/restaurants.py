from fastapi import APIRouter, Depends, Query, Response, status

from backend.app.db.store import SqlBookingStore
from backend.app.routers.deps import get_store, http_error
from backend.app.routers.schemas import RestaurantIn, RestaurantOut, RestaurantUpdate
from backend.app.services.errors import BookingError


router = APIRouter(prefix="/restaurants")


@router.get("", response_model=list[RestaurantOut])
async def list_restaurants(
    include_inactive: bool = Query(default=False),
    q: str | None = Query(default=None, min_length=1, max_length=100),
    store: SqlBookingStore = Depends(get_store),
) -> list[RestaurantOut]:
    try:
        restaurants = await store.list_restaurants(include_inactive=include_inactive, search=q)
    except BookingError as exc:
        raise http_error(exc) from exc
    return [RestaurantOut.from_domain(r) for r in restaurants]


@router.post("", response_model=RestaurantOut, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    payload: RestaurantIn,
    store: SqlBookingStore = Depends(get_store),
) -> RestaurantOut:
    try:
        restaurant = await store.create_restaurant(**payload.model_dump())
    except BookingError as exc:
        raise http_error(exc) from exc
    return RestaurantOut.from_domain(restaurant)


@router.get("/{restaurant_id}", response_model=RestaurantOut)
async def get_restaurant(
    restaurant_id: str,
    store: SqlBookingStore = Depends(get_store),
) -> RestaurantOut:
    try:
        restaurant = await store.get_restaurant(restaurant_id)
    except BookingError as exc:
        raise http_error(exc) from exc
    return RestaurantOut.from_domain(restaurant)


@router.patch("/{restaurant_id}", response_model=RestaurantOut)
async def update_restaurant(
    restaurant_id: str,
    payload: RestaurantUpdate,
    store: SqlBookingStore = Depends(get_store),
) -> RestaurantOut:
    try:
        restaurant = await store.update_restaurant(restaurant_id, payload.model_dump(exclude_unset=True))
    except BookingError as exc:
        raise http_error(exc) from exc
    return RestaurantOut.from_domain(restaurant)


@router.delete("/{restaurant_id}", response_model=RestaurantOut)
async def deactivate_restaurant(
    restaurant_id: str,
    store: SqlBookingStore = Depends(get_store),
) -> RestaurantOut:
    """Soft delete: the restaurant stays in the store with ``is_active`` false."""
    try:
        restaurant = await store.set_restaurant_active(restaurant_id, False)
    except BookingError as exc:
        raise http_error(exc) from exc
    return RestaurantOut.from_domain(restaurant)


@router.post("/{restaurant_id}/restore", response_model=RestaurantOut)
async def restore_restaurant(
    restaurant_id: str,
    store: SqlBookingStore = Depends(get_store),
) -> RestaurantOut:
    try:
        restaurant = await store.set_restaurant_active(restaurant_id, True)
    except BookingError as exc:
        raise http_error(exc) from exc
    return RestaurantOut.from_domain(restaurant)


@router.delete("/{restaurant_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
async def delete_restaurant(
    restaurant_id: str,
    store: SqlBookingStore = Depends(get_store),
) -> Response:
    """Hard delete: the restaurant, its tables and all of its bookings are removed."""
    try:
        await store.delete_restaurant(restaurant_id)
    except BookingError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
