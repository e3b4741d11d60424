"""Vendor endpoints.

Vendors are created under a project and addressed by id afterwards; the id
routes only reach vendors in the caller's own projects.
"""

from fastapi import APIRouter, Depends, Response, status

from api.auth import current_user, user_project_ids
from api.models import VendorCreate, VendorUpdate
from api.store import DemoStore, get_store

router = APIRouter(tags=["vendors"])

TABLE = "vendors"


@router.get("/vendors", summary="Vendors across all of the user's projects")
def list_all_vendors(user: dict = Depends(current_user),
                     store: DemoStore = Depends(get_store)) -> list[dict]:
    return store.list_records(TABLE, user_project_ids(user, store))


@router.get("/projects/{project_id}/vendors", summary="Vendors for a project")
def list_vendors(project_id: int, user: dict = Depends(current_user),
                 store: DemoStore = Depends(get_store)) -> list[dict]:
    store.project_for(user["id"], project_id)
    return store.list_records(TABLE, [project_id])


@router.post("/projects/{project_id}/vendors", status_code=status.HTTP_201_CREATED,
             summary="Add a vendor")
def create_vendor(project_id: int, body: VendorCreate,
                  user: dict = Depends(current_user),
                  store: DemoStore = Depends(get_store)) -> dict:
    store.project_for(user["id"], project_id)
    values = body.model_dump(by_alias=True, mode="json", exclude={"project_id"})
    if values.get("status") in ("booked", "paid"):
        values["isBooked"] = True
    return store.insert(TABLE, project_id, values)


@router.patch("/vendors/{vendor_id}", summary="Update a vendor")
def update_vendor(vendor_id: int, body: VendorUpdate,
                  user: dict = Depends(current_user),
                  store: DemoStore = Depends(get_store)) -> dict:
    values = body.model_dump(by_alias=True, mode="json", exclude_unset=True)
    if values.get("status") in ("booked", "paid"):
        values["isBooked"] = True
    return store.update(TABLE, vendor_id, user_project_ids(user, store), values)


@router.delete("/vendors/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete a vendor")
def delete_vendor(vendor_id: int, user: dict = Depends(current_user),
                  store: DemoStore = Depends(get_store)) -> Response:
    store.delete(TABLE, vendor_id, user_project_ids(user, store))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
