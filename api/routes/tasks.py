"""Task endpoints."""

from fastapi import APIRouter, Depends, Response, status

from api.auth import current_user, user_project_ids
from api.models import TaskCreate, TaskUpdate
from api.store import DemoStore, get_store

router = APIRouter(tags=["tasks"])

TABLE = "tasks"


@router.get("/tasks", summary="Tasks across all of the user's projects")
def list_all_tasks(user: dict = Depends(current_user),
                   store: DemoStore = Depends(get_store)) -> list[dict]:
    return store.list_records(TABLE, user_project_ids(user, store))


@router.get("/projects/{project_id}/tasks", summary="Tasks for a project")
def list_tasks(project_id: int, user: dict = Depends(current_user),
               store: DemoStore = Depends(get_store)) -> list[dict]:
    store.project_for(user["id"], project_id)
    return store.list_records(TABLE, [project_id])


@router.post("/projects/{project_id}/tasks", status_code=status.HTTP_201_CREATED,
             summary="Add a task")
def create_task(project_id: int, body: TaskCreate,
                user: dict = Depends(current_user),
                store: DemoStore = Depends(get_store)) -> dict:
    store.project_for(user["id"], project_id)
    values = body.model_dump(by_alias=True, mode="json", exclude={"project_id"})
    return store.insert(TABLE, project_id, values)


@router.patch("/tasks/{task_id}", summary="Update a task")
def update_task(task_id: int, body: TaskUpdate,
                user: dict = Depends(current_user),
                store: DemoStore = Depends(get_store)) -> dict:
    values = body.model_dump(by_alias=True, mode="json", exclude_unset=True)
    return store.update(TABLE, task_id, user_project_ids(user, store), values)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete a task")
def delete_task(task_id: int, user: dict = Depends(current_user),
                store: DemoStore = Depends(get_store)) -> Response:
    store.delete(TABLE, task_id, user_project_ids(user, store))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
