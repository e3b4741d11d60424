"""Budget item endpoints, scoped to a project."""

from fastapi import APIRouter, Depends, Response, status

from api.auth import current_user, user_project_ids
from api.models import BudgetItemCreate, BudgetItemUpdate
from api.store import DemoStore, get_store

router = APIRouter(tags=["budget"])

TABLE = "budget"


@router.get("/budget", summary="Budget items across all of the user's projects")
def list_all_budget_items(user: dict = Depends(current_user),
                          store: DemoStore = Depends(get_store)) -> list[dict]:
    return store.list_records(TABLE, user_project_ids(user, store))


@router.get("/projects/{project_id}/budget", summary="Budget items for a project")
def list_budget_items(project_id: int, user: dict = Depends(current_user),
                      store: DemoStore = Depends(get_store)) -> list[dict]:
    store.project_for(user["id"], project_id)
    return store.list_records(TABLE, [project_id])


@router.post("/projects/{project_id}/budget", status_code=status.HTTP_201_CREATED,
             summary="Add a budget item")
def create_budget_item(project_id: int, body: BudgetItemCreate,
                       user: dict = Depends(current_user),
                       store: DemoStore = Depends(get_store)) -> dict:
    store.project_for(user["id"], project_id)
    values = body.model_dump(by_alias=True, mode="json", exclude={"project_id"})
    return store.insert(TABLE, project_id, values)


@router.patch("/projects/{project_id}/budget/{item_id}", summary="Update a budget item")
def update_budget_item(project_id: int, item_id: int, body: BudgetItemUpdate,
                       user: dict = Depends(current_user),
                       store: DemoStore = Depends(get_store)) -> dict:
    store.project_for(user["id"], project_id)
    values = body.model_dump(by_alias=True, mode="json", exclude_unset=True)
    return store.update(TABLE, item_id, [project_id], values)


@router.delete("/projects/{project_id}/budget/{item_id}",
               status_code=status.HTTP_204_NO_CONTENT, summary="Delete a budget item")
def delete_budget_item(project_id: int, item_id: int,
                       user: dict = Depends(current_user),
                       store: DemoStore = Depends(get_store)) -> Response:
    store.project_for(user["id"], project_id)
    store.delete(TABLE, item_id, [project_id])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
