"""Guest list endpoints, including the bulk RSVP/group update."""

from fastapi import APIRouter, Depends, Response, status

from api.auth import current_user, user_project_ids
from api.models import GuestBulkUpdate, GuestCreate, GuestUpdate
from api.store import DemoStore, get_store

router = APIRouter(tags=["guests"])

TABLE = "guests"


@router.get("/guests", summary="Guests across all of the user's projects")
def list_all_guests(user: dict = Depends(current_user),
                    store: DemoStore = Depends(get_store)) -> list[dict]:
    return store.list_records(TABLE, user_project_ids(user, store))


@router.get("/projects/{project_id}/guests", summary="Guests for a project")
def list_guests(project_id: int, user: dict = Depends(current_user),
                store: DemoStore = Depends(get_store)) -> list[dict]:
    store.project_for(user["id"], project_id)
    return store.list_records(TABLE, [project_id])


@router.post("/projects/{project_id}/guests", status_code=status.HTTP_201_CREATED,
             summary="Add a guest")
def create_guest(project_id: int, body: GuestCreate,
                 user: dict = Depends(current_user),
                 store: DemoStore = Depends(get_store)) -> dict:
    store.project_for(user["id"], project_id)
    values = body.model_dump(by_alias=True, mode="json", exclude={"project_id"})
    return store.insert(TABLE, project_id, values)


@router.patch("/projects/{project_id}/guests/bulk", summary="Apply one change to many guests")
def bulk_update_guests(project_id: int, body: GuestBulkUpdate,
                       user: dict = Depends(current_user),
                       store: DemoStore = Depends(get_store)) -> list[dict]:
    """Update every guest in ``ids``; an unknown id fails the whole request."""
    store.project_for(user["id"], project_id)
    values = body.data.model_dump(by_alias=True, mode="json", exclude_unset=True)
    for guest_id in body.ids:
        store.get(TABLE, guest_id, [project_id])
    return [store.update(TABLE, guest_id, [project_id], values) for guest_id in body.ids]


@router.patch("/guests/{guest_id}", summary="Update a guest")
def update_guest(guest_id: int, body: GuestUpdate,
                 user: dict = Depends(current_user),
                 store: DemoStore = Depends(get_store)) -> dict:
    values = body.model_dump(by_alias=True, mode="json", exclude_unset=True)
    return store.update(TABLE, guest_id, user_project_ids(user, store), values)


@router.delete("/guests/{guest_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete a guest")
def delete_guest(guest_id: int, user: dict = Depends(current_user),
                 store: DemoStore = Depends(get_store)) -> Response:
    store.delete(TABLE, guest_id, user_project_ids(user, store))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
